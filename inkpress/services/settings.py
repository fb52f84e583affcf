"""Site settings reads and admin updates."""
import logging

from django.db import transaction

from ..cache import blog_cache
from ..forms import SettingsForm
from ..models import SiteSettings
from ..storage import has_s3_config as _has_s3_config
from ..utils import ActionResult, require_admin

logger = logging.getLogger(__name__)


def get_settings():
    """Decrypted settings dict (cached)."""
    return blog_cache.settings()


def has_s3_config():
    return _has_s3_config(get_settings())


@transaction.atomic
def update_settings(actor, data):
    """
    Update site settings.

    Fields missing from *data* keep their stored values. For credential
    fields an empty string clears the stored secret.
    """
    require_admin(actor)
    site = SiteSettings.load()

    merged = {name: getattr(site, name) for name in SettingsForm.base_fields}
    merged.update({k: v for k, v in data.items() if k in SettingsForm.base_fields})
    form = SettingsForm(merged, instance=site)
    if not form.is_valid():
        return ActionResult.invalid(form)

    site = form.save(commit=False)
    for field in SiteSettings.SECRET_FIELDS:
        if field in data:
            site.set_secret(field, (data[field] or "").strip())
    site.save()
    logger.info("Site settings updated by %s", actor.get_username())
    return ActionResult.ok()
