"""
Ordering API Client

Thin async wrapper over the HTTP API. The bearer token comes from the
injected ``SessionState``; checkout runs the same ordered checks as the
server before any request is made.
"""

import logging
from typing import Any, Optional

import httpx

from bhavan.client.cart import Cart
from bhavan.client.session import SessionState
from bhavan.services.checkout import find_rejection

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response, or a checkout rejected before sending."""

    def __init__(self, message: str, status_code: int = 0, code: Optional[str] = None, title: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.title = title


class BhavanClient:
    """
    Example:
        >>> async with BhavanClient("http://localhost:8001", session) as api:
        ...     menu = await api.get_menu(search="dosa")
    """

    def __init__(
        self,
        base_url: str,
        session: SessionState,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "BhavanClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        token = self.session.current.token
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._client.request(method, path, headers=self._headers(), **kwargs)
        if response.is_success:
            if response.status_code == 204 or not response.content:
                return None
            if response.headers.get("content-type", "").startswith("application/json"):
                return response.json()
            return response.text

        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("error") or body.get("detail") or response.reason_phrase
        raise ApiError(str(message), status_code=response.status_code, code=body.get("code"))

    # =========================================================================
    # CUSTOMER
    # =========================================================================

    async def refresh_session(self) -> dict:
        """Ask the server who the token belongs to and update the session."""
        info = await self._request("GET", "/api/session")
        if info["authenticated"]:
            self.session.update(info["user_id"], info["email"], info["is_admin"])
        return info

    async def get_menu(self, search: Optional[str] = None, category_id: Optional[str] = None) -> dict:
        params = {k: v for k, v in {"search": search, "category_id": category_id}.items() if v}
        return await self._request("GET", "/api/menu", params=params)

    async def locate(self, flat_no: str, apartment_street: str, sector: str, area: str) -> dict:
        return await self._request("POST", "/api/location", json={
            "flat_no": flat_no,
            "apartment_street": apartment_street,
            "sector": sector,
            "area": area,
        })

    async def checkout(
        self,
        cart: Cart,
        details: dict[str, str],
        latitude: Optional[float],
        longitude: Optional[float],
    ) -> dict:
        """
        Submit the cart. Clears it once the server accepts the order.

        Raises:
            ApiError: a local check failed (``status_code`` 0) or the
                server refused the order
        """
        rejection = find_rejection(
            authenticated=self.session.authenticated,
            details=details,
            latitude=latitude,
            longitude=longitude,
            lines=cart.lines,
        )
        if rejection is not None:
            raise ApiError(rejection.message, code=rejection.code, title=rejection.title)

        result = await self._request("POST", "/api/orders", json={
            **details,
            "latitude": latitude,
            "longitude": longitude,
            "items": cart.checkout_lines(),
        })
        cart.clear()
        logger.info(f"Order {result['order']['short_id']} placed")
        return result

    async def my_orders(self) -> list[dict]:
        return (await self._request("GET", "/api/orders"))["orders"]

    async def get_profile(self) -> dict:
        return await self._request("GET", "/api/profile")

    async def update_profile(self, **fields: Optional[str]) -> dict:
        return await self._request("PUT", "/api/profile", json=fields)

    # =========================================================================
    # ADMIN
    # =========================================================================

    async def all_orders(self, status: Optional[str] = None) -> list[dict]:
        params = {"status": status} if status else {}
        return (await self._request("GET", "/api/admin/orders", params=params))["orders"]

    async def set_status(self, order_id: str, status: str) -> dict:
        return await self._request("PATCH", f"/api/admin/orders/{order_id}/status", json={"status": status})

    async def download_receipt(self, order_id: str) -> str:
        return await self._request("GET", f"/api/admin/orders/{order_id}/receipt.txt")

    async def add_admin(self, email: str) -> dict:
        return await self._request("POST", "/functions/add-admin", json={"action": "add", "email": email})

    async def list_admins(self) -> list[dict]:
        return (await self._request("POST", "/functions/add-admin", json={"action": "list"}))["admins"]

    async def remove_admin(self, user_id: str) -> None:
        await self._request("DELETE", f"/api/admin/admins/{user_id}")
