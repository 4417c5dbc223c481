# models/hubspot_install.py
from tortoise import fields, models


class HubSpotInstall(models.Model):
    """
    One OAuth installation per HubSpot portal.
    Written on the first code exchange and updated in place on every refresh.
    """
    id = fields.IntField(primary_key=True)
    portal_id = fields.BigIntField(unique=True)

    access_token = fields.TextField()
    refresh_token = fields.TextField()
    expires_at = fields.DatetimeField()  # when access_token expires (UTC)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "hubspot_installs"

    def __str__(self) -> str:
        return f"HubSpotInstall(portal_id={self.portal_id})"
