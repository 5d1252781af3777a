"""
Runtime configuration for the sale audit webhook.

Settings are read once from environment variables and passed explicitly
into the processing pipeline, so tests can build their own instances
without touching process-wide state.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

BRAND_NAME = 'Cyrnel Origin'
BRAND_DOMAIN = 'cyrnelorigin.online'
ENGINE_VERSION = '1.0'
ENGINE_HEADER = ('X-Cyrnel-Origin', 'Automation-Engine')

DEFAULT_COMPLETION_API_URL = 'https://api.groq.com/openai/v1/chat/completions'
DEFAULT_COMPLETION_MODEL = 'llama-3.3-70b-versatile'
DEFAULT_EMAIL_API_URL = 'https://api.resend.com/emails'
DEFAULT_TIMEOUT_SECONDS = 30.0
CONNECT_TIMEOUT_SECONDS = 10.0


class ConfigurationError(Exception):
    """Raised when required configuration is invalid or missing."""
    pass


def _require(env: Mapping[str, str], name: str) -> str:
    value = (env.get(name) or '').strip()
    if not value:
        raise ConfigurationError(
            f"{name} environment variable is required but not set. "
            f"Please configure this in your SAM template or Lambda environment."
        )
    return value


def _read_timeout(env: Mapping[str, str], name: str) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return DEFAULT_TIMEOUT_SECONDS

    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number of seconds, got: '{raw}'")

    if timeout <= 0:
        raise ConfigurationError(f"{name} must be positive, got: {timeout}")
    return timeout


@dataclass(frozen=True)
class Settings:
    """
    Validated configuration for one deployment.

    Attributes:
        completion_api_key: Bearer token for the completion API
        email_api_key: Bearer token for the transactional email API
        completion_api_url: Chat completions endpoint
        completion_model: Model name sent with every completion request
        completion_timeout: Read timeout (seconds) for the completion call
        email_api_url: Email send endpoint
        email_timeout: Read timeout (seconds) for the email call
        from_address: Sender identity on the verified domain
        reply_to: Support address customers reply to
        scheduling_url: Call-to-action link in the audit email
        environment: Deployment environment name (dev, staging, prod)
    """
    completion_api_key: str
    email_api_key: str
    completion_api_url: str = DEFAULT_COMPLETION_API_URL
    completion_model: str = DEFAULT_COMPLETION_MODEL
    completion_timeout: float = DEFAULT_TIMEOUT_SECONDS
    email_api_url: str = DEFAULT_EMAIL_API_URL
    email_timeout: float = DEFAULT_TIMEOUT_SECONDS
    from_address: str = f'{BRAND_NAME} <audits@{BRAND_DOMAIN}>'
    reply_to: str = f'support@{BRAND_DOMAIN}'
    scheduling_url: str = 'https://calendly.com/cyrnelorigin'
    environment: str = 'dev'

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'Settings':
        """
        Build settings from environment variables.

        Raises:
            ConfigurationError: If an API key is missing or a timeout is invalid
        """
        if env is None:
            env = os.environ

        settings = cls(
            completion_api_key=_require(env, 'GROQ_API_KEY'),
            email_api_key=_require(env, 'RESEND_API_KEY'),
            completion_api_url=env.get('COMPLETION_API_URL') or DEFAULT_COMPLETION_API_URL,
            completion_model=env.get('COMPLETION_MODEL') or DEFAULT_COMPLETION_MODEL,
            completion_timeout=_read_timeout(env, 'COMPLETION_TIMEOUT'),
            email_api_url=env.get('EMAIL_API_URL') or DEFAULT_EMAIL_API_URL,
            email_timeout=_read_timeout(env, 'EMAIL_TIMEOUT'),
            from_address=env.get('AUDIT_FROM_ADDRESS') or cls.from_address,
            reply_to=env.get('AUDIT_REPLY_TO') or cls.reply_to,
            scheduling_url=env.get('SCHEDULING_URL') or cls.scheduling_url,
            environment=env.get('ENVIRONMENT') or 'dev',
        )

        logger.info(
            f"Settings loaded: environment={settings.environment}, "
            f"model={settings.completion_model}, "
            f"completion_timeout={settings.completion_timeout}s, "
            f"email_timeout={settings.email_timeout}s"
        )
        return settings
