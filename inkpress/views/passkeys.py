"""
WebAuthn passkey registration, sign-in and management.

The relying party id and origin come from ``INKPRESS["APP_URL"]`` when
set, else from the current request host.
"""
import json
import logging
from urllib.parse import urlparse

from django.contrib.auth import login
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_http_methods, require_POST
from webauthn import (
    generate_authentication_options,
    generate_registration_options,
    options_to_json,
    verify_authentication_response,
    verify_registration_response,
)
from webauthn.helpers import base64url_to_bytes, bytes_to_base64url
from webauthn.helpers.exceptions import (
    InvalidAuthenticationResponse,
    InvalidJSONStructure,
    InvalidRegistrationResponse,
)
from webauthn.helpers.structs import (
    AuthenticatorSelectionCriteria,
    PublicKeyCredentialDescriptor,
    ResidentKeyRequirement,
    UserVerificationRequirement,
)

from ..cache import blog_cache
from ..conf import blog_settings
from ..models import Passkey
from ..serializers import serialize_passkey
from ..utils import ActionResult
from .base import json_response, request_data, session_required

logger = logging.getLogger(__name__)

CHALLENGE_SESSION_KEY = "inkpress_webauthn_challenge"

WEBAUTHN_ERRORS = (
    InvalidRegistrationResponse,
    InvalidAuthenticationResponse,
    InvalidJSONStructure,
    ValueError,
    KeyError,
    TypeError,
)


def relying_party(request):
    """Return ``(rp_id, origin)`` for the site."""
    if blog_settings.APP_URL:
        parsed = urlparse(blog_settings.APP_URL)
        return parsed.hostname, f"{parsed.scheme}://{parsed.netloc}"
    host = request.get_host()
    return host.partition(":")[0], f"{request.scheme}://{host}"


def _options_response(request, options):
    request.session[CHALLENGE_SESSION_KEY] = bytes_to_base64url(options.challenge)
    return json_response(json.loads(options_to_json(options)))


def _pop_challenge(request):
    challenge = request.session.pop(CHALLENGE_SESSION_KEY, "")
    return base64url_to_bytes(challenge) if challenge else b""


def _normalize_credential_id(value):
    return bytes_to_base64url(base64url_to_bytes(value))


@require_GET
@session_required
def begin_registration(request):
    rp_id, _ = relying_party(request)
    user = request.user
    options = generate_registration_options(
        rp_id=rp_id,
        rp_name=blog_cache.settings().get("site_title") or rp_id,
        user_id=str(user.pk).encode(),
        user_name=user.get_username(),
        user_display_name=user.get_full_name() or user.get_username(),
        exclude_credentials=[
            PublicKeyCredentialDescriptor(id=base64url_to_bytes(cred_id))
            for cred_id in user.passkeys.values_list("credential_id", flat=True)
        ],
        authenticator_selection=AuthenticatorSelectionCriteria(
            resident_key=ResidentKeyRequirement.PREFERRED,
            user_verification=UserVerificationRequirement.PREFERRED,
        ),
    )
    return _options_response(request, options)


@require_POST
@session_required
def complete_registration(request):
    data = request_data(request)
    rp_id, origin = relying_party(request)
    try:
        verified = verify_registration_response(
            credential=data.get("credential", data),
            expected_challenge=_pop_challenge(request),
            expected_rp_id=rp_id,
            expected_origin=origin,
        )
    except WEBAUTHN_ERRORS as exc:
        logger.warning("Passkey registration failed for %s: %s", request.user.get_username(), exc)
        return ActionResult.fail("Passkey registration failed").as_response()

    credential = data.get("credential", data)
    transports = (credential.get("response") or {}).get("transports") or []
    passkey = Passkey.objects.create(
        user=request.user,
        name=(data.get("name") or "Passkey")[:100],
        credential_id=bytes_to_base64url(verified.credential_id),
        public_key=bytes_to_base64url(verified.credential_public_key),
        counter=verified.sign_count,
        device_type=getattr(verified.credential_device_type, "value", str(verified.credential_device_type)),
        backed_up=verified.credential_backed_up,
        transports=",".join(transports),
        aaguid=verified.aaguid or "",
    )
    return ActionResult.ok(serialize_passkey(passkey)).as_response(status=201)


@require_GET
def begin_login(request):
    rp_id, _ = relying_party(request)
    # Empty allow list: the authenticator offers its discoverable credentials
    options = generate_authentication_options(
        rp_id=rp_id,
        user_verification=UserVerificationRequirement.PREFERRED,
    )
    return _options_response(request, options)


@require_POST
def complete_login(request):
    data = request_data(request)
    rp_id, origin = relying_party(request)
    challenge = _pop_challenge(request)
    try:
        credential_id = _normalize_credential_id(data.get("rawId") or data["id"])
    except WEBAUTHN_ERRORS:
        return ActionResult.fail("Invalid credential").as_response()

    passkey = Passkey.objects.select_related("user").filter(credential_id=credential_id).first()
    if passkey is None:
        return ActionResult.fail("Unknown passkey").as_response(status=401)

    try:
        verified = verify_authentication_response(
            credential=data,
            expected_challenge=challenge,
            expected_rp_id=rp_id,
            expected_origin=origin,
            credential_public_key=base64url_to_bytes(passkey.public_key),
            credential_current_sign_count=passkey.counter,
        )
    except WEBAUTHN_ERRORS as exc:
        logger.warning("Passkey sign-in failed: %s", exc)
        return ActionResult.fail("Passkey verification failed").as_response(status=401)

    passkey.counter = verified.new_sign_count
    passkey.save(update_fields=["counter"])
    login(request, passkey.user, backend="django.contrib.auth.backends.ModelBackend")
    return ActionResult.ok().as_response()


@require_GET
@session_required
def passkey_list(request):
    return json_response({
        "success": True,
        "data": [serialize_passkey(p) for p in request.user.passkeys.all()],
    })


@require_http_methods(["PUT", "DELETE"])
@session_required
def passkey_detail(request, pk):
    passkey = get_object_or_404(Passkey, pk=pk, user=request.user)
    if request.method == "DELETE":
        passkey.delete()
        return ActionResult.ok().as_response()

    name = (request_data(request).get("name") or "").strip()
    if not name:
        return ActionResult.fail("Name cannot be empty").as_response()
    passkey.name = name[:100]
    passkey.save(update_fields=["name"])
    return ActionResult.ok(serialize_passkey(passkey)).as_response()
