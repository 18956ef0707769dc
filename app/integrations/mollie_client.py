# app/integrations/mollie_client.py
from __future__ import annotations
from typing import Optional, Dict, Any
import httpx

from app.core.logger import logger


def cents_to_amount(cents: int, currency: str) -> Dict[str, str]:
    # Mollie espera string com 2 casas: {"currency": "EUR", "value": "97.00"}
    return {"currency": currency, "value": f"{cents // 100}.{cents % 100:02d}"}


class MollieClient:
    def __init__(self, api_key: Optional[str], base_url: str = "https://api.mollie.com/v2", timeout: float = 20.0):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "authorization": f"Bearer {self.api_key}",
        }

    def _ensure_configured(self) -> None:
        if not self.api_key:
            raise MollieError("not_configured", {"error": "MOLLIE_API_KEY não configurada"})

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        self._ensure_configured()
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                r = await client.request(method, f"{self.base_url}{path}", headers=self._headers, **kwargs)
            except httpx.HTTPError as e:
                logger.error("[MOLLIE] %s %s falhou: %s", method, path, e)
                raise MollieError("transport_error", {"error": str(e)}) from e
            if r.status_code >= 400:
                # tenta devolver o JSON de erro da Mollie
                try:
                    data = r.json()
                except ValueError:
                    data = {"error": r.text}
                data["_status_code"] = r.status_code
                logger.error("[MOLLIE] %s %s -> HTTP %s: %s", method, path, r.status_code, data)
                raise MollieError(f"http_{r.status_code}", data)
            return r.json()

    async def create_payment(self, *, amount_cents: int, currency: str, description: str,
                             redirect_url: str, webhook_url: str,
                             metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Cria o pagamento e devolve {"id", "status", "checkout_url"}.
        """
        payload = {
            "amount": cents_to_amount(amount_cents, currency),
            "description": description,
            "redirectUrl": redirect_url,
            "webhookUrl": webhook_url,
            "metadata": metadata or {},
        }
        data = await self._request("POST", "/payments", json=payload)
        return {
            "id": data.get("id"),
            "status": data.get("status"),
            "checkout_url": ((data.get("_links") or {}).get("checkout") or {}).get("href"),
        }

    async def get_payment(self, payment_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/payments/{payment_id}")


class MollieError(RuntimeError):
    def __init__(self, code: str, data: Any):
        super().__init__(code)
        self.code = code
        self.data = data
