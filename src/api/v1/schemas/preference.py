"""Pydantic schemas for notification preference API."""

from pydantic import BaseModel, Field

from domain.entities.notification import (
    DigestSettings,
    DoNotDisturb,
    NotificationCategory,
    NotificationChannel,
    NotificationPreferences,
    default_category_channels,
)


class DoNotDisturbSchema(BaseModel):
    """Quiet hours, as local ``HH:MM`` times."""

    enabled: bool = False
    start_time: str | None = Field(None, examples=["22:00"])
    end_time: str | None = Field(None, examples=["08:00"])


class DigestSchema(BaseModel):
    enabled: bool = False
    delivery_time: str | None = Field(None, examples=["09:00"])


class NotificationPreferencesSchema(BaseModel):
    """Full preference record for one user."""

    channels: dict[NotificationCategory, list[NotificationChannel]] = Field(
        default_factory=default_category_channels
    )
    do_not_disturb: DoNotDisturbSchema = Field(default_factory=DoNotDisturbSchema)
    digest: DigestSchema = Field(default_factory=DigestSchema)

    def to_entity(self, user_id: str) -> NotificationPreferences:
        channels = default_category_channels()
        channels.update({category: list(dict.fromkeys(c)) for category, c in self.channels.items()})
        return NotificationPreferences(
            user_id=user_id,
            channels=channels,
            do_not_disturb=DoNotDisturb(**self.do_not_disturb.model_dump()),
            digest=DigestSettings(**self.digest.model_dump()),
        )


class NotificationPreferencesResponse(NotificationPreferencesSchema):
    user_id: str

    @classmethod
    def from_entity(cls, preferences: NotificationPreferences) -> "NotificationPreferencesResponse":
        return cls(
            user_id=preferences.user_id,
            channels=preferences.channels,
            do_not_disturb=DoNotDisturbSchema(
                enabled=preferences.do_not_disturb.enabled,
                start_time=preferences.do_not_disturb.start_time,
                end_time=preferences.do_not_disturb.end_time,
            ),
            digest=DigestSchema(
                enabled=preferences.digest.enabled,
                delivery_time=preferences.digest.delivery_time,
            ),
        )


class ToggleChannelRequest(BaseModel):
    """Flip one channel on or off for a category."""

    category: NotificationCategory
    channel: NotificationChannel
