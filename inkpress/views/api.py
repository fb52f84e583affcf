"""
Data export/import endpoints and the analytics script proxy.
"""
import logging

import requests
from django.contrib.auth import login
from django.core.exceptions import PermissionDenied
from django.http import HttpResponse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST

from ..analytics import fetch_tracker_script
from ..serializers import serialize_user
from ..transfer import (
    InvalidImport,
    export_data,
    import_data,
    initialize_from_import,
    parse_init_import,
)
from ..utils import ActionResult, to_bool
from .base import json_response, request_data, unauthorized

logger = logging.getLogger(__name__)


@require_GET
def export_view(request):
    try:
        document = export_data(
            request.user,
            include_media=to_bool(request.GET.get("include_media", False)),
            include_users=to_bool(request.GET.get("include_users", False)),
            include_settings=to_bool(request.GET.get("include_settings", False)),
        )
    except PermissionDenied:
        return unauthorized(request)

    response = json_response(document)
    filename = f"blog-export-{timezone.localdate().isoformat()}.json"
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


@require_POST
def import_view(request):
    try:
        counts = import_data(request.user, request_data(request))
    except PermissionDenied:
        return unauthorized(request)
    except InvalidImport as exc:
        return ActionResult.fail(str(exc)).as_response()
    return ActionResult.ok(counts).as_response()


@require_POST
def init_import_view(request):
    """
    First-run import. ``action`` is ``parse`` to list the exported users,
    or ``initialize`` to recreate one of them as admin and load the data.
    """
    body = request_data(request)
    action = body.get("action")
    try:
        if action == "parse":
            return ActionResult.ok(parse_init_import(body.get("data"))).as_response()
        if action == "initialize":
            user, counts = initialize_from_import(
                body.get("data"),
                body.get("selected_user_id"),
                body.get("password"),
            )
            login(request, user, backend="django.contrib.auth.backends.ModelBackend")
            return ActionResult.ok({"user": serialize_user(user), "counts": counts}).as_response()
    except PermissionDenied as exc:
        return ActionResult.fail(str(exc)).as_response(status=403)
    except InvalidImport as exc:
        return ActionResult.fail(str(exc)).as_response()
    return ActionResult.fail("Unknown action").as_response()


@require_GET
def umami_script(request):
    try:
        script = fetch_tracker_script()
    except requests.RequestException as exc:
        logger.warning("Could not fetch the Umami tracker script: %s", exc)
        return HttpResponse("// Failed to load analytics", status=502, content_type="application/javascript")

    response = HttpResponse(script, content_type="application/javascript")
    response["Cache-Control"] = "public, max-age=86400"
    return response
