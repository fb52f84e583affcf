"""
Email/password authentication backed by Django sessions.
"""
import logging

from django.contrib.auth import authenticate, get_user_model, login, logout
from django.db import transaction
from django.views.decorators.http import require_GET, require_POST

from ..forms import SignInForm, SignUpForm
from ..registration import check_registration_status, post_registration_cleanup, rate_limit
from ..serializers import serialize_user
from ..utils import ActionResult
from .base import json_response, request_data

logger = logging.getLogger(__name__)


@require_GET
def registration_status(request):
    allowed, is_first_user = check_registration_status()
    return json_response({"allowed": allowed, "is_first_user": is_first_user})


@require_POST
@rate_limit("sign-up", "SIGN_UP_RATE")
def sign_up(request):
    allowed, is_first_user = check_registration_status()
    if not allowed:
        return ActionResult.fail("Registration is closed").as_response(status=403)

    form = SignUpForm(request_data(request))
    if not form.is_valid():
        return ActionResult.invalid(form).as_response()

    cleaned = form.cleaned_data
    with transaction.atomic():
        user = get_user_model().objects.create_user(
            username=cleaned["email"],
            email=cleaned["email"],
            password=cleaned["password"],
            first_name=cleaned["name"],
        )
        if is_first_user:
            post_registration_cleanup(user)

    login(request, user, backend="django.contrib.auth.backends.ModelBackend")
    logger.info("New account %s", user.get_username())
    return ActionResult.ok(serialize_user(user)).as_response(status=201)


@require_POST
@rate_limit("sign-in", "SIGN_IN_RATE")
def sign_in(request):
    form = SignInForm(request_data(request))
    if not form.is_valid():
        return ActionResult.invalid(form).as_response()

    user = authenticate(
        request,
        username=form.cleaned_data["email"],
        password=form.cleaned_data["password"],
    )
    if user is None:
        return ActionResult.fail("Invalid email or password").as_response(status=401)

    login(request, user)
    return ActionResult.ok(serialize_user(user)).as_response()


@require_POST
def sign_out(request):
    logout(request)
    return ActionResult.ok().as_response()
