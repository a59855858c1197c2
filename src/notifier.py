import logging
import os

import requests

from src.app_config import AppConfig
from src.errors import ConfigurationError, UpstreamServiceError

logger = logging.getLogger(__name__)

GRANT_TYPE = "client_credentials"

EMAIL_BODY = """
<!DOCTYPE html>
<html>
<body>
<p>Hi,</p>
<p>Please find attached the content entries that are missing a French translation.</p>
<p>Thanks.</p>
</body>
</html>
"""


def get_oauth_token(config: AppConfig, client_id: str, client_secret: str) -> str:
    """
    Exchange client credentials for a bearer token at the email gateway.

    Raises:
        UpstreamServiceError: If the token request fails.
    """
    try:
        response = requests.post(
            config.email.oauth_url,
            data={
                "grant_type": GRANT_TYPE,
                "client_id": client_id,
                "client_secret": client_secret,
                "scope": config.email.oauth_scope,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=config.http_timeout,
        )
    except requests.RequestException as e:
        logger.error(f"Error fetching OAuth token: {e}")
        raise UpstreamServiceError("email-oauth", str(e)) from e

    if response.status_code != 200:
        logger.error(f"Error fetching OAuth token: {response.status_code} {response.text}")
        raise UpstreamServiceError("email-oauth", f"token request returned {response.status_code}",
                                   status_code=response.status_code)
    try:
        return response.json()["access_token"]
    except (ValueError, KeyError) as e:
        raise UpstreamServiceError("email-oauth", "token response has no access_token") from e


def send_report_email(config: AppConfig, file_path: str, client_id: str, client_secret: str) -> int:
    """
    Email the report file to the configured recipients.

    Failures are raised, not absorbed: a report that could not be sent must be
    visible to whoever triggered the job.

    Returns:
        int: The number of recipients the report was sent to.

    Raises:
        ConfigurationError: If credentials or recipients are missing.
        UpstreamServiceError: If the token or send request fails.
    """
    if not client_id or not client_secret:
        raise ConfigurationError("Client ID and secret are required")
    recipients = config.email.recipients
    if not recipients:
        raise ConfigurationError("No email recipients configured (EMAIL_LIST)")

    token = get_oauth_token(config, client_id, client_secret)

    data = {
        "from": config.email.sender,
        "to": ",".join(recipients),
        "cc": config.email.cc,
        "subject": config.email.subject,
        "bodyText": EMAIL_BODY,
        "isHtmlBody": "true",
    }
    with open(file_path, 'rb') as attachment:
        files = {"attachment": (os.path.basename(file_path), attachment, "text/csv")}
        try:
            response = requests.post(
                config.email.proxy_url,
                data=data,
                files=files,
                headers={"Authorization": f"Bearer {token}"},
                timeout=config.http_timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Error sending email: {e}")
            raise UpstreamServiceError("email-proxy", str(e)) from e

    if not response.ok:
        logger.error(f"Error sending email: {response.status_code} {response.text}")
        raise UpstreamServiceError("email-proxy", f"send request returned {response.status_code}",
                                   status_code=response.status_code)

    logger.info(f"Sent '{os.path.basename(file_path)}' to {len(recipients)} recipient(s).")
    return len(recipients)
