"""HTTP client for the storefront API."""

import logging
from typing import Any, BinaryIO, Dict, Iterable, List, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class StorefrontError(Exception):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


# (filename, file object, content type)
UploadTuple = Tuple[str, BinaryIO, str]


class StorefrontClient:
    """Thin wrapper over the REST routes. Keeps the bearer token after login."""

    def __init__(self, base_url: str, session=None, token: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.token = token
        self.user: Optional[Dict[str, Any]] = None
        self.timeout = timeout

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def is_admin(self) -> bool:
        return bool(self.user) and self.user.get("role") == "admin"

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = self.session.request(method, f"{self.base_url}{path}", headers=headers, timeout=self.timeout, **kwargs)
        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            logger.debug("%s %s failed with %s: %s", method, path, response.status_code, message)
            raise StorefrontError(response.status_code, message)
        return response.json()

    def _remember(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self.token = data["token"]
        self.user = data["user"]
        return self.user

    # Auth
    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        return self._remember(self._request("POST", "/api/auth/register", json={"name": name, "email": email, "password": password}))

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._remember(self._request("POST", "/api/auth/login", json={"email": email, "password": password}))

    def logout(self) -> None:
        self.token = None
        self.user = None

    def me(self) -> Dict[str, Any]:
        self.user = self._request("GET", "/api/auth/me")["user"]
        return self.user

    def chat_token(self) -> str:
        return self._request("GET", "/api/auth/chat-token")["token"]

    # Catalog
    def list_products(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/products")

    def get_product(self, product_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/products/{product_id}")

    def create_product(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/products", json=fields)

    def update_product(self, product_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/api/products/{product_id}", json=changes)

    def delete_product(self, product_id: str) -> None:
        self._request("DELETE", f"/api/products/{product_id}")

    # Admin
    def list_clients(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/users/clients")["clients"]

    def upload_image(self, upload: UploadTuple) -> str:
        return self._request("POST", "/api/upload/single", files={"image": upload})["path"]

    def upload_images(self, uploads: Iterable[UploadTuple]) -> List[str]:
        files = [("images", upload) for upload in uploads]
        return [f["path"] for f in self._request("POST", "/api/upload/multiple", files=files)["files"]]

    # Chat
    def support_channel(self) -> str:
        return self._request("GET", "/api/chat/support-channel")["channel"]
