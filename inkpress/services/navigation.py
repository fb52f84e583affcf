"""Header navigation links."""
from django.core.exceptions import ValidationError
from django.db import transaction

from ..cache import blog_cache
from ..forms import NavItemForm
from ..models import NavItem
from ..serializers import serialize_nav_item
from ..utils import ActionResult, get_object_or_none, require_admin


def get_nav_items():
    return blog_cache.nav_items()


def get_nav_items_uncached():
    return list(NavItem.objects.all())


def create_nav_item(actor, data):
    require_admin(actor)
    form = NavItemForm(data)
    if not form.is_valid():
        return ActionResult.invalid(form)
    return ActionResult.ok(serialize_nav_item(form.save()))


def update_nav_item(actor, item_id, data):
    require_admin(actor)
    item = get_object_or_none(NavItem.objects, pk=item_id)
    if item is None:
        return ActionResult.fail("Navigation item not found")
    form = NavItemForm(data, instance=item)
    if not form.is_valid():
        return ActionResult.invalid(form)
    return ActionResult.ok(serialize_nav_item(form.save()))


def delete_nav_item(actor, item_id):
    require_admin(actor)
    item = get_object_or_none(NavItem.objects, pk=item_id)
    if item is None:
        return ActionResult.fail("Navigation item not found")
    item.delete()
    return ActionResult.ok()


def reorder_nav_items(actor, ordered_ids):
    """Set each item's sort order to its position in *ordered_ids*."""
    require_admin(actor)
    try:
        with transaction.atomic():
            for position, item_id in enumerate(ordered_ids):
                NavItem.objects.filter(pk=item_id).update(sort_order=position)
    except ValidationError:
        return ActionResult.fail("Invalid navigation item id")
    # update() sends no signals
    blog_cache.invalidate_navigation()
    return ActionResult.ok()
