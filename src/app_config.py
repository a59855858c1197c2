"""Application configuration module for the missing-translation report job."""
import logging
import os
import sys
import tempfile
from dataclasses import dataclass
from typing import Dict, List, Optional, Any

import yaml
from dotenv import load_dotenv

from src.errors import ConfigurationError
from src.logging_config import setup_logger

DEVELOPMENT_MODE = "development"

DEFAULT_EMAIL_SUBJECT = "Missing translations detected for the content space"
DEFAULT_REPORT_FILE_NAME = "missing_translations.csv"


@dataclass
class EmailSettings:
    """Email gateway settings used by the notifier."""
    oauth_url: str
    oauth_scope: str
    proxy_url: str
    sender: str
    recipients: List[str]
    cc: str = ""
    subject: str = DEFAULT_EMAIL_SUBJECT


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    # Core paths
    project_root: str
    report_file_path: str

    # Secret source
    environment_mode: str
    secret_project_id: Optional[str]

    # Content store
    contentful_environment: str
    contentful_api_url: str
    contentful_app_url: str
    source_locale: str
    target_locale: str
    excluded_content_types: List[str]
    page_size: int
    include_depth: int

    # Translation service
    gcp_project_id: str
    gcp_location: str

    # Report variant
    include_suggestions: bool
    include_links: bool

    # Processing settings
    http_timeout: Optional[float]
    show_progress: bool

    email: EmailSettings

    @property
    def is_development(self) -> bool:
        return self.environment_mode == DEVELOPMENT_MODE

    @property
    def translation_parent(self) -> str:
        """Resource context passed to every translation service call."""
        return f"projects/{self.gcp_project_id}/locations/{self.gcp_location}"


def _compute_project_root() -> str:
    """Compute the project root directory."""
    script_real_path = os.path.realpath(__file__)
    script_dir = os.path.dirname(script_real_path)
    return os.path.abspath(os.path.join(script_dir, os.pardir))


def _load_dotenv_files(project_root: str) -> None:
    """Load .env files from project root or docker directory."""
    dotenv_path_project_root = os.path.join(project_root, '.env')
    dotenv_path_docker_dir = os.path.join(project_root, 'docker', '.env')

    if os.path.exists(dotenv_path_project_root):
        load_dotenv(dotenv_path_project_root)
    elif os.path.exists(dotenv_path_docker_dir):
        load_dotenv(dotenv_path_docker_dir)


def _load_yaml_config(project_root: str) -> Dict[str, Any]:
    """Load the YAML configuration file, falling back to defaults on any problem."""
    default_config_path = os.path.join(project_root, 'config.yaml')
    config_file = os.environ.get('REPORT_CONFIG_FILE', default_config_path)

    if not os.path.isabs(config_file):
        config_file = os.path.abspath(config_file)

    config = {}
    try:
        if not os.path.exists(config_file):
            print(f"Warning: Configuration file '{config_file}' not found. Using default configuration.",
                  file=sys.stderr)
            return config

        if not os.access(config_file, os.R_OK):
            print(f"Error: Configuration file '{config_file}' exists but is not readable. Check file permissions.",
                  file=sys.stderr)
            return config

        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
            if loaded_config is None:
                print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
                      file=sys.stderr)
            elif isinstance(loaded_config, dict):
                config = loaded_config
            else:
                print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
                      file=sys.stderr)

    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
    except OSError as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)

    return config


def _setup_logger_from_config(config: Dict[str, Any]) -> logging.Logger:
    """Set up logger based on configuration."""
    log_config = config.get('logging', {})
    log_level_str = os.environ.get('LOG_LEVEL', log_config.get('log_level', 'INFO')).upper()
    log_file_path = log_config.get('log_file_path')
    log_to_console = log_config.get('log_to_console', True)
    console_stream = log_config.get('console_stream', 'stderr')
    return setup_logger(log_level_str, log_file_path, log_to_console, console_stream)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def _parse_recipients(value: Any) -> List[str]:
    """Accept either a YAML list or a comma-separated string of addresses."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(',')
    return [address.strip() for address in value if address and address.strip()]


def _build_email_settings(config: Dict[str, Any]) -> EmailSettings:
    email_config = config.get('email', {})
    return EmailSettings(
        oauth_url=os.environ.get('EMAIL_OAUTH_URL', email_config.get('oauth_url', '')),
        oauth_scope=str(email_config.get('oauth_scope', '')),
        proxy_url=os.environ.get('EMAIL_PROXY_URL', email_config.get('proxy_url', '')),
        sender=email_config.get('sender', ''),
        recipients=_parse_recipients(os.environ.get('EMAIL_LIST', email_config.get('recipients'))),
        cc=email_config.get('cc', ''),
        subject=email_config.get('subject', DEFAULT_EMAIL_SUBJECT),
    )


def _validate_config(app_config: AppConfig, logger: logging.Logger) -> None:
    missing = []
    if not app_config.gcp_project_id:
        missing.append('GCP_PROJECT_ID')
    if not app_config.is_development and not app_config.secret_project_id:
        missing.append('SECRET_PROJECT_ID')
    if missing:
        logger.critical("Missing required settings: %s", ', '.join(missing))
        raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")


def load_app_config() -> AppConfig:
    """
    Load application configuration from YAML file and environment variables.

    Returns:
        AppConfig: The loaded application configuration.

    Raises:
        ConfigurationError: If a required setting is missing.
    """
    project_root = _compute_project_root()

    _load_dotenv_files(project_root)

    config = _load_yaml_config(project_root)

    logger = _setup_logger_from_config(config)

    contentful_config = config.get('contentful', {})
    translation_config = config.get('translation', {})
    report_config = config.get('report', {})

    default_report_path = os.path.join(tempfile.gettempdir(), DEFAULT_REPORT_FILE_NAME)
    http_timeout = config.get('http_timeout', 60)

    app_config = AppConfig(
        project_root=project_root,
        report_file_path=report_config.get('file_path', default_report_path),
        environment_mode=os.environ.get('ENVIRONMENT', config.get('environment', 'production')).lower(),
        secret_project_id=os.environ.get('SECRET_PROJECT_ID', config.get('secret_project_id')),
        contentful_environment=os.environ.get(
            'CONTENTFUL_ENVIRONMENT', contentful_config.get('environment', 'master')),
        contentful_api_url=contentful_config.get('api_url', 'https://api.contentful.com').rstrip('/'),
        contentful_app_url=contentful_config.get('app_url', 'https://app.contentful.com').rstrip('/'),
        source_locale=contentful_config.get('source_locale', 'en-US'),
        target_locale=contentful_config.get('target_locale', 'fr-CA'),
        excluded_content_types=list(contentful_config.get('excluded_content_types', [])),
        page_size=int(contentful_config.get('page_size', 1000)),
        include_depth=int(contentful_config.get('include_depth', 10)),
        gcp_project_id=os.environ.get('GCP_PROJECT_ID', translation_config.get('project_id', '')),
        gcp_location=os.environ.get('GCP_LOCATION', translation_config.get('location', 'global')),
        include_suggestions=_parse_bool(
            os.environ.get('INCLUDE_SUGGESTIONS', report_config.get('include_suggestions', False))),
        include_links=_parse_bool(os.environ.get('INCLUDE_LINKS', report_config.get('include_links', True))),
        http_timeout=float(http_timeout) if http_timeout else None,
        show_progress=_parse_bool(config.get('show_progress', False)),
        email=_build_email_settings(config),
    )

    _validate_config(app_config, logger)

    logger.info(
        "Configuration loaded: mode=%s, contentful environment=%s, target locale=%s, suggestions=%s, links=%s",
        app_config.environment_mode,
        app_config.contentful_environment,
        app_config.target_locale,
        app_config.include_suggestions,
        app_config.include_links,
    )
    return app_config
