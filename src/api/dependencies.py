"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from functools import lru_cache

from fastapi import Depends, Request

from src.adapters.smtp.console import ConsoleVerificationNotifier
from src.adapters.smtp.sender import SmtpVerificationNotifier
from src.config.settings import Settings, get_settings
from src.domain.accounts import AuthConfig, AuthService
from src.domain.ports import AccountRepository, VerificationNotifier


def get_repository(request: Request) -> AccountRepository:
    """
    Get the account repository from app state.

    The repository is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.repository


def build_notifier(settings: Settings) -> VerificationNotifier:
    """Create the notifier selected by settings.email_backend."""
    if settings.email_backend == "smtp":
        return SmtpVerificationNotifier(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.email_sender,
            verification_url=settings.verification_url,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
        )
    return ConsoleVerificationNotifier(verification_url=settings.verification_url)


@lru_cache
def get_notifier() -> VerificationNotifier:
    """Get the configured notifier (singleton - notifiers are stateless)."""
    return build_notifier(get_settings())


def get_auth_config() -> AuthConfig:
    """Build the explicit AuthService configuration from settings."""
    settings = get_settings()
    return AuthConfig(
        verification_ttl_seconds=settings.verification_ttl_seconds,
        bcrypt_cost=settings.bcrypt_cost,
        salt_secret=settings.salt_secret,
    )


def get_auth_service(
    request: Request,
    notifier: VerificationNotifier = Depends(get_notifier),
    config: AuthConfig = Depends(get_auth_config),
) -> AuthService:
    """
    Create auth service with injected dependencies.

    Wires together the repository, notifier and configuration.
    """
    return AuthService(repository=get_repository(request), notifier=notifier, config=config)
