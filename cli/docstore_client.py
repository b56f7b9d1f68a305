"""HTTP client for communicating with the DocStore service."""

import time
import uuid
from pathlib import Path
from typing import Optional

import httpx

from cli.config import Config
from cli.utils import format_document_table, format_file_size, format_usage_bar
from common.constants import REQUEST_ID_HEADER
from common.logging_config import get_logger

logger = get_logger(__name__)


class DocStoreClient:
    """HTTP client for the DocStore API with retry logic and error handling."""

    def __init__(self, config: Config, transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize the client.

        Args:
            config: Configuration instance
            transport: Optional httpx transport (tests pass an httpx.MockTransport)
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout(),
            transport=transport,
        )
        self.request_id = None
        logger.info(f"Initialized DocStoreClient [base_url={config.get_base_url()}]")

    def close(self) -> None:
        self.session.close()

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            endpoint: API endpoint path
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            ConnectionError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})
        kwargs['headers'][REQUEST_ID_HEADER] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if 400 <= response.status_code < 500:
                    logger.warning(
                        f"Client error: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                    )
                    return response

                if response.status_code >= 500 and attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                    )

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Server may be overloaded.")
        if isinstance(last_exception, httpx.ConnectError):
            raise ConnectionError("Cannot connect to DocStore server. Is it running?")
        raise ConnectionError("Max retries exceeded")

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map HTTP errors to user-friendly messages.
        """
        try:
            error_data = response.json()
            detail = error_data.get('detail', 'Unknown error')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            error_data = {}
            detail = response.text or 'Unknown error'
            code = 'UNKNOWN'

        if code == 'QUOTA_EXCEEDED':
            return (
                f"Storage limit exceeded: {error_data.get('used_mb')} MB used of "
                f"{error_data.get('limit_mb')} MB, {error_data.get('required_mb')} MB required."
            )

        error_messages = {
            'INVALID_API_KEY': 'Not authenticated. Please run: login <api_key>',
            'ACCESS_DENIED': f'Access denied: {detail}',
            'DOCUMENT_NOT_FOUND': 'Document not found.',
            'USER_NOT_FOUND': 'User not found.',
            'DEPENDENCY_FAILURE': 'Content storage is currently unavailable. Please try again later.',
        }

        if code in error_messages:
            return error_messages[code]

        if code == 'VALIDATION_ERROR':
            return detail

        status_messages = {
            400: 'Bad request',
            401: 'Not authenticated',
            403: 'Access forbidden',
            404: 'Not found',
            409: 'Conflict',
            413: 'Storage limit exceeded',
            500: 'Server error',
            503: 'Service unavailable',
        }

        message = status_messages.get(response.status_code, detail)
        return f"{message} (Code: {code})" if code != 'UNKNOWN' else message

    def _get_auth_header(self) -> dict:
        """
        Raises:
            ValueError: If no API key is configured
        """
        api_key = self.config.get_api_key()
        if not api_key:
            raise ValueError("Not logged in. Please run: login <api_key>")
        return {'Authorization': f'Bearer {api_key}'}

    def _call(self, action: str, method: str, endpoint: str, expected: tuple, **kwargs):
        """
        Run an authenticated request.

        Returns:
            (response, None) on an expected status, otherwise (None, message)
        """
        try:
            headers = self._get_auth_header()
        except ValueError as e:
            return None, f"Error: {e}"

        try:
            response = self._request_with_retry(method, endpoint, headers=headers, **kwargs)
        except ConnectionError as e:
            logger.error(f"Connection error during {action}: {e}")
            return None, f"Error: {e}"

        if response.status_code not in expected:
            logger.warning(f"{action} failed status={response.status_code}")
            return None, f"{action.capitalize()} failed: {self._format_error(response)}"
        return response, None

    def login(self, api_key: str) -> str:
        """
        Store an API key and verify it against the server.
        """
        self.config.set_api_key(api_key)
        response, error = self._call('login', 'GET', '/users/me', (200,))
        if error:
            return error

        data = response.json()
        logger.info(f"Login successful [user_id={data['user_id']}]")
        return f"Logged in as {data['name']} <{data['email']}>\nAPI key saved to config."

    def whoami(self) -> str:
        response, error = self._call('whoami', 'GET', '/users/me', (200,))
        if error:
            return error

        data = response.json()
        storage = data['storage']
        return (
            f"{data['name']} <{data['email']}>\n"
            f"User ID: {data['user_id']}\n"
            f"Storage: {format_usage_bar(storage['used'], storage['limit'])}"
        )

    def list_documents(self, folder_id: Optional[str] = None) -> str:
        params = {'folder': folder_id} if folder_id else {}
        response, error = self._call('list', 'GET', '/documents', (200,), params=params)
        if error:
            return error
        return format_document_table(response.json()['documents'])

    def create_folder(self, title: str, parent_id: Optional[str] = None) -> str:
        response, error = self._call(
            'mkdir', 'POST', '/documents/folders', (201,),
            json={'title': title, 'parent_folder_id': parent_id}
        )
        if error:
            return error

        data = response.json()
        return f"Folder created: {data['title']}\nID: {data['node_id']}"

    def create_file(self, title: str, local_path: str, parent_id: Optional[str] = None) -> str:
        path = Path(local_path).expanduser()
        if not path.is_file():
            return f"Error: File not found: {local_path}"

        try:
            content = path.read_text(encoding='utf-8')
        except UnicodeDecodeError:
            return f"Error: {local_path} is not a UTF-8 text file"
        except OSError as e:
            return f"Error: Cannot read {local_path}: {e}"

        response, error = self._call(
            'create', 'POST', '/documents', (201,),
            json={'title': title, 'content': content, 'parent_folder_id': parent_id}
        )
        if error:
            return error

        data = response.json()
        shared = len(data['collaborators'])
        lines = [
            f"File created: {data['title']} ({format_file_size(data['content_size'])})",
            f"ID: {data['node_id']}",
        ]
        if shared:
            lines.append(f"Inherited {shared} collaborator(s) from the parent folder")
        return "\n".join(lines)

    def show(self, node_id: str) -> str:
        response, error = self._call('show', 'GET', f'/documents/{node_id}', (200,))
        if error:
            return error

        data = response.json()
        lines = [
            f"{data['title']} ({data['type']})",
            f"ID: {data['node_id']}",
            f"Owner: {data['owner_id']}",
            f"Your permission: {data['permission']}",
            f"Last modified: {data['last_modified']} by {data.get('last_modified_by') or '-'}",
        ]
        if data['type'] == 'file':
            lines.append(f"Size: {format_file_size(data['content_size'])}")
            lines.append(f"Content: {data.get('content_url') or '-'}")
        if data.get('parent_id'):
            lines.append(f"Parent: {data['parent_id']}")
        return "\n".join(lines)

    def rename(self, node_id: str, title: str) -> str:
        response, error = self._call('rename', 'PUT', f'/documents/{node_id}', (200,), json={'title': title})
        if error:
            return error
        return f"Renamed to: {response.json()['title']}"

    def delete(self, node_id: str) -> str:
        response, error = self._call('delete', 'DELETE', f'/documents/{node_id}', (200,))
        if error:
            return error

        data = response.json()
        return (
            f"Deleted {data['deleted_count']} item(s), "
            f"freed {format_file_size(data['reclaimed_bytes'])}"
        )

    def share(self, node_id: str, email: str, permission: str = 'view') -> str:
        response, error = self._call(
            'share', 'POST', f'/collaborators/{node_id}', (200, 204),
            json={'email': email, 'permission': permission}
        )
        if error:
            return error

        if response.status_code == 204:
            return f"{email} already has access."
        data = response.json()
        return f"Shared with {email} ({data['permission']}) on {len(data['affected_node_ids'])} item(s)"

    def chmod(self, node_id: str, user_id: str, permission: str) -> str:
        response, error = self._call(
            'chmod', 'PUT', f'/collaborators/{node_id}/{user_id}', (200,),
            json={'permission': permission}
        )
        if error:
            return error

        data = response.json()
        if not data['affected_node_ids']:
            return f"{user_id} is not a collaborator; nothing changed."
        return f"Permission set to {permission} on {len(data['affected_node_ids'])} item(s)"

    def unshare(self, node_id: str, user_id: str) -> str:
        response, error = self._call('unshare', 'DELETE', f'/collaborators/{node_id}/{user_id}', (200,))
        if error:
            return error
        return f"Access revoked on {len(response.json()['affected_node_ids'])} item(s)"

    def collaborators(self, node_id: str) -> str:
        response, error = self._call('collaborators', 'GET', f'/collaborators/{node_id}', (200,))
        if error:
            return error

        data = response.json()
        lines = []
        owner = data.get('owner')
        if owner:
            lines.append(f"owner  {owner['name']} <{owner['email']}>  {owner['user_id']}")
        for collab in data['collaborators']:
            lines.append(f"{collab['permission']:<6} {collab['name']} <{collab['email']}>  {collab['user_id']}")
        return "\n".join(lines) if lines else "No collaborators."
