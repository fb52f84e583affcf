"""
Shared view plumbing: request body parsing, JSON responses and the
admin console base view.
"""
import json
from functools import wraps

from django.core.exceptions import BadRequest, PermissionDenied
from django.core.serializers.json import DjangoJSONEncoder
from django.http import JsonResponse
from django.views import View

from ..cache import blog_cache
from ..utils import ActionResult


def request_data(request):
    """
    Return the request payload as a dict.

    JSON bodies are decoded; form posts fall back to ``request.POST``
    with list values for repeated keys such as ``tag_ids``.
    """
    if request.content_type == "application/json":
        if not request.body:
            return {}
        try:
            data = json.loads(request.body)
        except ValueError:
            raise BadRequest("Malformed JSON body") from None
        if not isinstance(data, dict):
            raise BadRequest("Expected a JSON object")
        return data

    data = {}
    for key, values in request.POST.lists():
        data[key] = values if key.endswith("_ids") or len(values) > 1 else values[0]
    return data


def json_response(data, status=200):
    return JsonResponse(data, status=status, encoder=DjangoJSONEncoder, safe=False)


def ok(data=None):
    return ActionResult.ok(data).as_response()


def unauthorized(request):
    status = 403 if request.user.is_authenticated else 401
    return json_response({"success": False, "error": "Unauthorized"}, status=status)


def session_required(view_func):
    """Like ``login_required`` but answers with a JSON 401 instead of a redirect."""

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return unauthorized(request)
        return view_func(request, *args, **kwargs)

    return wrapper


class ConsoleView(View):
    """
    Base class for admin console endpoints.

    Operations raise ``PermissionDenied`` for non-admins; it is turned
    into a JSON error (401 when signed out, 403 otherwise).
    """

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except PermissionDenied:
            return unauthorized(request)

    def get_data(self):
        return request_data(self.request)


class BlogContextMixin:
    """Adds site settings, navigation and tags to template contexts."""

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["site"] = blog_cache.settings()
        context["nav_items"] = blog_cache.nav_items()
        context["all_tags"] = blog_cache.tags()
        return context
