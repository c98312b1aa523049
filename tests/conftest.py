"""
Configuration des tests pytest.
"""
import json
import os
import sys
from typing import Dict, List

import httpx
import pytest

# Ajoute src au path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from movacal_gateway.config.settings import MovacalSettings  # noqa: E402

BASE_URL = "https://movacal.test/service/api/v1"


class FakeMovacal:
    """
    API Movacal simulée, branchée sur `httpx.MockTransport`.

    - `credential.php` délivre `cred-1`, `cred-2`, ... (ou `credential_status`)
    - les autres endpoints répondent via la file `queue()`, sinon un JSON par défaut
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.responses: Dict[str, List[httpx.Response]] = {}
        self.credential_status = 200
        self.credentials_issued = 0

    def queue(self, endpoint: str, *responses: httpx.Response):
        self.responses.setdefault(endpoint, []).extend(responses)

    def calls(self, endpoint: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.rsplit("/", 1)[-1] == endpoint]

    def endpoint_calls(self) -> List[httpx.Request]:
        return [r for r in self.requests if not r.url.path.endswith("/credential.php")]

    @staticmethod
    def body(request: httpx.Request) -> dict:
        return json.loads(request.content)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        name = request.url.path.rsplit("/", 1)[-1]

        if name == "credential.php":
            if self.credential_status != 200:
                return httpx.Response(self.credential_status, json={"error": "denied"})
            self.credentials_issued += 1
            return httpx.Response(200, json={"credential": f"cred-{self.credentials_issued}"})

        queued = self.responses.get(name)
        if queued:
            return queued.pop(0)
        return httpx.Response(200, json={"endpoint": name})


@pytest.fixture
def movacal_settings() -> MovacalSettings:
    """Configuration complète pointant vers l'API simulée."""
    return MovacalSettings(
        base_url=BASE_URL,
        basic_id="basic-user",
        basic_password="basic-pass",
        provider="test-provider",
        secret_key="test-secret",
        credential_ttl=900,
        default_params_json="{}",
        allowed_endpoints=("getVersion.php", "getFileCategory.php", "getPatient.php"),
    )


@pytest.fixture
def fake_movacal() -> FakeMovacal:
    return FakeMovacal()


@pytest.fixture
async def http_client(fake_movacal: FakeMovacal):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_movacal.handler)) as client:
        yield client
