"""
Client submitters - Form validation, key derivation and submission.

Registration Attempt
====================

1. Validate fields locally. On failure report field errors; nothing is
   derived and nothing is sent.
2. Derive key + fresh salt in a worker thread (the event loop stays free).
3. Submit {email, name, derived_key, salt}. The password is not part of
   the payload and is not kept after derivation.
4. Report exactly one terminal outcome through on_success / on_error.

Derivation always completes before submission starts. If the attempt is
cancelled while deriving, CancelledError propagates and nothing is sent.
There are no automatic retries: a new submit() derives a new salt and key.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.client.forms import SignInForm, SignUpForm, validate_form
from src.client.gateway import AuthGateway, HttpAuthGateway, SignUpPayload
from src.config.settings import Settings
from src.domain.exceptions import DerivationError, ServiceError
from src.domain.key_derivation import KeyDeriver

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    """Terminal outcome of one submission attempt."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    DERIVATION_ERROR = "derivation_error"
    SERVICE_ERROR = "service_error"


@dataclass(frozen=True)
class SubmissionOutcome:
    status: OutcomeStatus
    message: str
    email: str | None = None
    field_errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS


OutcomeCallback = Callable[[SubmissionOutcome], None]
PendingCallback = Callable[[bool], None]


@dataclass
class _Submitter:
    gateway: AuthGateway
    deriver: KeyDeriver = field(default_factory=KeyDeriver)
    on_success: OutcomeCallback | None = None
    on_error: OutcomeCallback | None = None
    on_pending: PendingCallback | None = None

    @classmethod
    def from_settings(cls, settings: Settings, **callbacks: Any):
        """Build a submitter talking HTTP to settings.auth_service_url."""
        return cls(
            gateway=HttpAuthGateway(base_url=settings.auth_service_url),
            deriver=KeyDeriver(
                iterations=settings.kdf_iterations,
                key_length=settings.kdf_key_length,
                digest=settings.kdf_digest,
            ),
            **callbacks,
        )

    def _set_pending(self, pending: bool) -> None:
        if self.on_pending is not None:
            self.on_pending(pending)

    def _finish(self, outcome: SubmissionOutcome) -> SubmissionOutcome:
        callback = self.on_success if outcome.ok else self.on_error
        if callback is not None:
            callback(outcome)
        return outcome

    def _invalid(self, errors: dict[str, str]) -> SubmissionOutcome:
        return self._finish(
            SubmissionOutcome(
                status=OutcomeStatus.VALIDATION_ERROR,
                message="Please correct the highlighted fields.",
                field_errors=errors,
            )
        )

    def _derivation_failed(self, error: DerivationError) -> SubmissionOutcome:
        logger.error("Key derivation failed: %s", error)
        return self._finish(
            SubmissionOutcome(status=OutcomeStatus.DERIVATION_ERROR, message="Something went wrong.")
        )

    def _service_failed(self, error: ServiceError) -> SubmissionOutcome:
        return self._finish(
            SubmissionOutcome(status=OutcomeStatus.SERVICE_ERROR, message=error.message)
        )


@dataclass
class RegistrationSubmitter(_Submitter):
    """Submits registrations with a derived key in place of the password."""

    async def submit(self, fields: Mapping[str, Any]) -> SubmissionOutcome:
        """
        Run one registration attempt.

        Args:
            fields: Form values keyed name, email, password, confirmPassword

        Returns:
            The terminal outcome (also passed to on_success / on_error)
        """
        form, errors = validate_form(SignUpForm, fields)
        if form is None:
            return self._invalid(errors)

        try:
            credential = await self.deriver.derive_async(form.email, form.password)
        except DerivationError as e:
            return self._derivation_failed(e)

        payload = SignUpPayload(
            email=form.email,
            name=form.name,
            derived_key=credential.key,
            salt=credential.salt,
        )
        del form

        try:
            self._set_pending(True)
            try:
                await self.gateway.sign_up(payload)
            finally:
                self._set_pending(False)
        except ServiceError as e:
            return self._service_failed(e)

        return self._finish(
            SubmissionOutcome(
                status=OutcomeStatus.SUCCESS,
                message="Your account has been created. Check your email for a verification link.",
                email=payload.email,
            )
        )


@dataclass
class SignInSubmitter(_Submitter):
    """Signs in by re-deriving the key from the stored salt."""

    async def submit(self, fields: Mapping[str, Any]) -> SubmissionOutcome:
        form, errors = validate_form(SignInForm, fields)
        if form is None:
            return self._invalid(errors)

        try:
            self._set_pending(True)
            try:
                salt = await self.gateway.fetch_salt(form.email)
                credential = await self.deriver.rederive_async(form.email, form.password, salt)
                await self.gateway.sign_in(form.email, credential.key)
            finally:
                self._set_pending(False)
        except DerivationError as e:
            return self._derivation_failed(e)
        except ServiceError as e:
            return self._service_failed(e)

        return self._finish(
            SubmissionOutcome(status=OutcomeStatus.SUCCESS, message="Signed in", email=form.email)
        )
