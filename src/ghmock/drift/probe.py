"""
ghmock Live Probes

Adapters that fetch a live response for a manifest entry. The drift detector
and fixture recorder only see the LiveProbe call shape:

    probe(request, params=None) -> parsed JSON

Two adapters ship with the package:
- GhCliProbe: shells out to ``gh api`` (uses the gh CLI's own auth)
- HttpProbe: talks to the API directly with requests and a token from the
  environment
"""

import json
import logging
import shutil
import subprocess
from typing import Any, Dict, List, Optional, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..common.errors import LiveProbeFailure
from ..common.utils import get_github_token
from .manifest import ProbeRequest

DEFAULT_API_URL = "https://api.github.com"


class LiveProbe(Protocol):
    """Callable that returns the live JSON response for a probe request."""

    def __call__(self, request: ProbeRequest, params: Optional[Dict[str, Any]] = None) -> Any:
        ...


def _merged_variables(request: ProbeRequest, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    variables = dict(request.variables or {})
    variables.update(params or {})
    return variables


class GhCliProbe:
    """
    Live probe backed by the gh CLI.

    Example:
        probe = GhCliProbe()
        data = probe(ProbeRequest(type="rest", endpoint="repos/acme/widgets/labels"))
    """

    def __init__(self, executable: str = "gh", timeout: Optional[float] = 60):
        self.executable = executable
        self.timeout = timeout
        self.logger = logging.getLogger("ghmock.probe")

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    def build_command(self, request: ProbeRequest, params: Optional[Dict[str, Any]] = None) -> List[str]:
        """Build the gh api argument vector for a request."""
        if request.type == "graphql":
            cmd = [self.executable, "api", "graphql", "-f", f"query={request.query}"]
            for key, value in _merged_variables(request, params).items():
                if isinstance(value, str):
                    cmd.extend(["-f", f"{key}={value}"])
                else:
                    # -F lets gh convert numbers, booleans and null
                    cmd.extend(["-F", f"{key}={json.dumps(value)}"])
            return cmd

        if request.type == "rest":
            return [self.executable, "api", request.endpoint or "", "-X", request.method]

        raise LiveProbeFailure(f"Unsupported probe type: {request.type}")

    def __call__(self, request: ProbeRequest, params: Optional[Dict[str, Any]] = None) -> Any:
        cmd = self.build_command(request, params)
        self.logger.debug(f"[PROBE] {request.describe()}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise LiveProbeFailure(f"Command not found: {self.executable}") from e
        except subprocess.TimeoutExpired as e:
            raise LiveProbeFailure(f"Timed out after {self.timeout}s: {request.describe()}") from e

        if result.returncode != 0:
            message = (result.stderr or result.stdout or "").strip()
            raise LiveProbeFailure(
                f"gh api exited with {result.returncode} for {request.describe()}: {message}"
            )

        if not result.stdout.strip():
            raise LiveProbeFailure(f"Empty response for {request.describe()}")

        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise LiveProbeFailure(f"Invalid JSON from {request.describe()}: {e}") from e


class HttpProbe:
    """
    Live probe that calls the REST and GraphQL APIs over HTTPS.

    The token is read from GITHUB_TOKEN / GH_TOKEN unless passed explicitly.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        token: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.token = token if token is not None else get_github_token()
        self.timeout = timeout
        self.max_retries = max_retries
        self.logger = logging.getLogger("ghmock.probe")
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create requests session with retry logic."""
        session = requests.Session()

        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS", "POST"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'Accept': 'application/vnd.github+json',
            'User-Agent': 'ghmock-drift',
        })
        if self.token:
            session.headers['Authorization'] = f"Bearer {self.token}"
        return session

    def __call__(self, request: ProbeRequest, params: Optional[Dict[str, Any]] = None) -> Any:
        self.logger.debug(f"[PROBE] {request.describe()}")

        if request.type == "graphql":
            method = "POST"
            url = f"{self.base_url}/graphql"
            kwargs = {'json': {'query': request.query, 'variables': _merged_variables(request, params)}}
        elif request.type == "rest":
            method = request.method
            url = f"{self.base_url}/{(request.endpoint or '').lstrip('/')}"
            kwargs = {'params': params} if params else {}
        else:
            raise LiveProbeFailure(f"Unsupported probe type: {request.type}")

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise LiveProbeFailure(f"{request.describe()} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise LiveProbeFailure(f"Invalid JSON from {request.describe()}: {e}") from e

        # gh api exits non-zero on GraphQL errors without data; match that
        if request.type == "graphql" and isinstance(body, dict) and body.get('errors') and not body.get('data'):
            messages = '; '.join(str(err.get('message', err)) for err in body['errors'])
            raise LiveProbeFailure(f"GraphQL errors for {request.describe()}: {messages}")

        return body
