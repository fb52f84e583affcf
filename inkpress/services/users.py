"""User administration."""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import ProtectedError

from ..cache import blog_cache
from ..forms import UserForm
from ..models import Profile
from ..serializers import serialize_user
from ..utils import ActionResult, get_object_or_none, require_admin

logger = logging.getLogger(__name__)


def _users():
    return get_user_model().objects.select_related("profile")


def get_users(actor):
    require_admin(actor)
    return list(_users().order_by("-date_joined"))


def get_user_by_id(actor, user_id):
    require_admin(actor)
    return get_object_or_none(_users(), pk=user_id)


@transaction.atomic
def update_user(actor, user_id, data):
    """Update name, image, bio, website and role of a user."""
    require_admin(actor)
    user = get_object_or_none(_users(), pk=user_id)
    if user is None:
        return ActionResult.fail("User not found")

    form = UserForm(data)
    if not form.is_valid():
        return ActionResult.invalid(form)
    cleaned = form.cleaned_data

    profile, _ = Profile.objects.get_or_create(user=user)
    if "name" in data:
        user.first_name = cleaned["name"]
        user.last_name = ""
        user.save(update_fields=["first_name", "last_name"])
        # listings and the feed carry author names
        blog_cache.invalidate_posts_list()
    for field in ("image", "bio", "website"):
        if field in data:
            setattr(profile, field, cleaned[field])
    if cleaned["role"]:
        profile.role = cleaned["role"]
    profile.save()
    user.profile = profile
    return ActionResult.ok(serialize_user(user))


def delete_user(actor, user_id):
    """Delete a user. Admins cannot delete themselves or post authors."""
    require_admin(actor)
    user = get_object_or_none(_users(), pk=user_id)
    if user is None:
        return ActionResult.fail("User not found")
    if user.pk == actor.pk:
        return ActionResult.fail("You cannot delete your own account")
    try:
        with transaction.atomic():
            user.delete()
    except ProtectedError:
        return ActionResult.fail("This user still has posts and cannot be deleted")
    logger.info("User %s deleted by %s", user.get_username(), actor.get_username())
    return ActionResult.ok()
