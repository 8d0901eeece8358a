"""
calnotes Google Authentication Helper

Scope definitions and OAuth credential loading for the Calendar and Drive
clients.
"""

from pathlib import Path
from typing import Optional

from calnotes.exceptions import CredentialError

GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/calendar.readonly",
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/drive",
]


def run_oauth_flow(
    credentials_path: Path,
    token_path: Path,
    scopes: Optional[list] = None,
    port: int = 0,
):
    """Run the Google OAuth browser flow and save the resulting token.

    Args:
        credentials_path: Path to the client_secret / credentials.json file.
        token_path: Path where token.json will be saved.
        scopes: OAuth scopes (defaults to GOOGLE_SCOPES).
        port: Local server port (0 = auto-select).

    Returns:
        The authorized google.oauth2.credentials.Credentials object.
    """
    from google_auth_oauthlib.flow import InstalledAppFlow

    flow = InstalledAppFlow.from_client_secrets_file(
        str(credentials_path),
        scopes or GOOGLE_SCOPES,
    )
    creds = flow.run_local_server(port=port)

    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(creds.to_json())

    return creds


def get_credentials(
    credentials_path: Path,
    token_path: Path,
    scopes: Optional[list] = None,
    interactive: bool = True,
):
    """Load the stored token, refreshing or re-authorizing when needed.

    Args:
        credentials_path: Path to credentials.json (needed for the browser flow).
        token_path: Path to token.json.
        scopes: OAuth scopes (defaults to GOOGLE_SCOPES).
        interactive: Allow opening a browser when no usable token exists.

    Returns:
        Valid google.oauth2.credentials.Credentials object.

    Raises:
        CredentialError: If no usable token exists and the browser flow is
            not possible.
    """
    from google.oauth2.credentials import Credentials
    from google.auth.transport.requests import Request
    from google.auth.exceptions import RefreshError

    effective_scopes = scopes or GOOGLE_SCOPES
    creds = None

    if token_path.exists():
        creds = Credentials.from_authorized_user_file(str(token_path), effective_scopes)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
            token_path.write_text(creds.to_json())
            return creds
        except RefreshError as e:
            if not interactive:
                raise CredentialError(
                    "Google token could not be refreshed",
                    credential_type="Google",
                    details=str(e),
                )

    if not interactive:
        raise CredentialError(
            f"No usable Google token at {token_path}",
            credential_type="Google",
            remediation="Run 'calnotes auth' once on a machine with a browser",
        )

    if not credentials_path.exists():
        raise CredentialError(
            f"Google OAuth client file not found: {credentials_path}",
            credential_type="Google",
            remediation="Download credentials.json from Google Cloud Console",
        )

    return run_oauth_flow(credentials_path, token_path, effective_scopes)
