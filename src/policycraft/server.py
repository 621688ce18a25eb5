"""Preview server exposing the authoring core over JSON."""

from __future__ import annotations

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from policycraft.activity import ActivityLog
from policycraft.catalog import (
    form_state_from_dict,
    lookups_from_dict,
    policy_from_dict,
    policy_to_dict,
)
from policycraft.errors import IncompleteFormError, PolicyDocumentError
from policycraft.models import Lookups, PolicyStatus
from policycraft.renderer import SHORT_SUMMARY_LENGTH, render, render_short
from policycraft.session import AuthoringSession
from policycraft.wizard import TOPOLOGIES, is_step_valid, name_error


def _error(
    message: str, code: str, param: str | None = None, status_code: int = 400
) -> JSONResponse:
    return JSONResponse(
        {
            "error": {
                "message": message,
                "type": "invalid_request_error",
                "param": param,
                "code": code,
            }
        },
        status_code=status_code,
    )


def create_app(
    lookups: Lookups | None = None,
    activity_log: ActivityLog | None = None,
    summary_length: int = SHORT_SUMMARY_LENGTH,
    topology: str = "five-step",
) -> Starlette:
    """Create the Starlette ASGI application.

    Args:
        lookups: Default reference data, used when a request body does not
            carry its own ``lookups``.
        activity_log: Log that accepted submissions are recorded in.
        summary_length: Maximum length of the short summary.
        topology: Wizard topology used when a request does not name one.

    Returns:
        A configured Starlette application.

    Raises:
        ValueError: If ``topology`` is not a known wizard topology.
    """
    if topology not in TOPOLOGIES:
        raise ValueError(f"Unknown topology {topology!r}")
    default_lookups = lookups or Lookups()
    default_topology = topology
    log = activity_log if activity_log is not None else ActivityLog()

    async def _body(request: Request) -> dict | None:
        try:
            body = await request.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

    def _lookups_for(body: dict) -> Lookups:
        if "lookups" in body:
            return lookups_from_dict(body["lookups"])
        return default_lookups

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    async def preview(request: Request) -> JSONResponse:
        body = await _body(request)
        if body is None:
            return _error("Invalid JSON in request body", "invalid_json")
        try:
            policy = policy_from_dict(body.get("policy"))
        except PolicyDocumentError as exc:
            return _error(str(exc), "invalid_policy", "policy")

        lookups = _lookups_for(body)
        return JSONResponse(
            {
                "summary": render(policy, lookups),
                "shortSummary": render_short(policy, lookups, summary_length),
            }
        )

    async def validate(request: Request) -> JSONResponse:
        body = await _body(request)
        if body is None:
            return _error("Invalid JSON in request body", "invalid_json")

        topology = body.get("topology", default_topology)
        steps = TOPOLOGIES.get(topology)
        if steps is None:
            return _error(
                f"Unknown topology {topology!r}", "invalid_request", "topology"
            )
        try:
            state = form_state_from_dict(body.get("form"), _lookups_for(body))
        except PolicyDocumentError as exc:
            return _error(str(exc), "invalid_form", "form")

        validity = {step.value: is_step_valid(step, state) for step in steps}
        return JSONResponse(
            {
                "steps": validity,
                "nameError": name_error(state.name),
                "complete": all(validity.values()),
            }
        )

    async def assemble(request: Request) -> JSONResponse:
        body = await _body(request)
        if body is None:
            return _error("Invalid JSON in request body", "invalid_json")
        try:
            status = PolicyStatus(body.get("status", PolicyStatus.DRAFT.value))
        except ValueError:
            return _error("status must be Draft or Active", "invalid_request", "status")
        if status == PolicyStatus.INACTIVE:
            return _error("status must be Draft or Active", "invalid_request", "status")

        lookups = _lookups_for(body)
        try:
            state = form_state_from_dict(body.get("form"), lookups)
        except PolicyDocumentError as exc:
            return _error(str(exc), "invalid_form", "form")

        session = AuthoringSession(lookups, log, TOPOLOGIES[default_topology], state)
        try:
            if status == PolicyStatus.ACTIVE:
                policy = session.publish()
            else:
                policy = session.save_draft()
        except IncompleteFormError as exc:
            return JSONResponse(
                {
                    "error": {
                        "message": str(exc),
                        "type": "validation_error",
                        "param": [step.value for step in exc.invalid_steps],
                        "code": "incomplete_form",
                    }
                },
                status_code=422,
            )

        return JSONResponse(
            {"policy": policy_to_dict(policy), "summary": render(policy, lookups)}
        )

    return Starlette(
        routes=[
            Route("/health", health, methods=["GET"]),
            Route("/v1/policies/preview", preview, methods=["POST"]),
            Route("/v1/policies/validate", validate, methods=["POST"]),
            Route("/v1/policies/assemble", assemble, methods=["POST"]),
        ],
    )
