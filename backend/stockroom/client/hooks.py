# Overview: Table hooks: cached list state plus mutations that refetch after writing.

"""
Table hooks

Each hook wraps one API collection and exposes:
- ``items``: the last fetched list
- ``loading``: True until the first fetch finishes
- ``error``: the last fetch failure as a MutationResult, or None
- async mutations returning ``MutationResult``

A successful mutation awaits a refetch of the collection before it returns,
so ``items`` reflects the write. Failed mutations are logged and reported;
nothing is retried and the cached list is left as it was.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from .api import ApiClient, ApiError, attachment_filename
from .results import MutationResult

logger = logging.getLogger(__name__)


def _failure(e: ApiError) -> MutationResult:
    return MutationResult.failure(e.kind, str(e), data=e.payload or None)


class TableHook:
    path: str = ""
    item_key: str | None = None
    label: str = "records"

    def __init__(self, api: ApiClient):
        self.api = api
        self.items: list[dict] = []
        self.loading = True
        self.error: MutationResult | None = None

    async def fetch(self, params: dict | None = None) -> list[dict]:
        try:
            data = await self.api.get(self.path, params=params)
            self.items = data.get("items") or []
            self.error = None
        except ApiError as e:
            logger.error("Error fetching %s: %s", self.label, e)
            self.error = _failure(e)
        finally:
            self.loading = False
        return self.items

    async def _mutate(
        self,
        action: str,
        method: str,
        path: str,
        *,
        result_key: str | None = None,
        **kwargs,
    ) -> MutationResult:
        try:
            data = await self.api.request(method, path, **kwargs)
        except ApiError as e:
            logger.error("Error %s %s: %s", action, self.label, e)
            return _failure(e)

        await self.fetch()
        key = result_key or self.item_key
        if key:
            return MutationResult.success(data.get(key))
        return MutationResult.success(data)

    async def _create(self, payload: dict) -> MutationResult:
        return await self._mutate("adding", "POST", self.path, json=payload)

    async def _update(self, record_id: str, payload: dict) -> MutationResult:
        return await self._mutate("updating", "PATCH", f"{self.path}/{record_id}", json=payload)

    async def _delete(self, record_id: str) -> MutationResult:
        return await self._mutate("deleting", "DELETE", f"{self.path}/{record_id}")

    async def _download(self, path: str, directory: str | os.PathLike, fallback: str) -> MutationResult:
        """Save an attachment (PDF) into directory; data is the written path."""
        try:
            response = await self.api.send("GET", path)
        except ApiError as e:
            logger.error("Error downloading %s: %s", fallback, e)
            return _failure(e)

        os.makedirs(directory, exist_ok=True)
        target = os.path.join(directory, attachment_filename(response, fallback))
        with open(target, "wb") as fh:
            fh.write(response.content)
        return MutationResult.success(target)


# =============================================================================
# Catalog
# =============================================================================

class CategoriesHook(TableHook):
    path = "/api/categories"
    item_key = "item"
    label = "categories"

    @property
    def categories(self) -> list[dict]:
        return self.items

    async def add_category(self, name: str) -> MutationResult:
        return await self._create({"name": name})

    async def edit_category(self, category_id: str, name: str) -> MutationResult:
        return await self._update(category_id, {"name": name})

    async def delete_category(self, category_id: str) -> MutationResult:
        return await self._delete(category_id)


class UnitsHook(TableHook):
    path = "/api/units"
    item_key = "item"
    label = "units"

    @property
    def units(self) -> list[dict]:
        return self.items

    async def add_unit(self, name: str) -> MutationResult:
        return await self._create({"name": name})

    async def edit_unit(self, unit_id: str, name: str) -> MutationResult:
        return await self._update(unit_id, {"name": name})

    async def delete_unit(self, unit_id: str) -> MutationResult:
        return await self._delete(unit_id)


class ProductsHook(TableHook):
    path = "/api/products"
    item_key = "product"
    label = "products"

    async def add_product(self, payload: dict) -> MutationResult:
        return await self._create(payload)

    async def update_product(self, product_id: str, payload: dict) -> MutationResult:
        return await self._update(product_id, payload)

    async def delete_product(self, product_id: str) -> MutationResult:
        return await self._delete(product_id)


# =============================================================================
# Sales and purchases
# =============================================================================

class SalesHook(TableHook):
    path = "/api/sales"
    item_key = "sale"
    label = "sales"

    async def add_sale(self, payload: dict) -> MutationResult:
        return await self._create(payload)

    async def update_sale(self, sale_id: str, payload: dict) -> MutationResult:
        return await self._update(sale_id, payload)

    async def delete_sale(self, sale_id: str) -> MutationResult:
        return await self._delete(sale_id)

    async def download_invoice(self, sale_id: str, directory: str | os.PathLike) -> MutationResult:
        return await self._download(
            f"{self.path}/{sale_id}/invoice.pdf",
            directory,
            f"sales-invoice-{sale_id}.pdf",
        )


class PurchasesHook(TableHook):
    path = "/api/purchases"
    item_key = "purchase"
    label = "purchases"

    async def fetch_order(self, purchase_order_id: str) -> list[dict]:
        """Lines of one purchase order; does not replace ``items``."""
        data = await self.api.get(self.path, params={"purchase_order_id": purchase_order_id})
        return data.get("items") or []

    async def add_purchase(self, payload: dict) -> MutationResult:
        return await self._create(payload)

    async def update_purchase(self, purchase_id: str, payload: dict) -> MutationResult:
        return await self._update(purchase_id, payload)

    async def delete_purchase(self, purchase_id: str) -> MutationResult:
        return await self._delete(purchase_id)

    async def download_purchase_order(self, purchase_id: str, directory: str | os.PathLike) -> MutationResult:
        return await self._download(
            f"{self.path}/{purchase_id}/purchase-order.pdf",
            directory,
            f"purchase-order-{purchase_id}.pdf",
        )


# =============================================================================
# Returns
# =============================================================================

class _ReturnsHook(TableHook):
    item_key = "return"

    async def add_return(self, payload: dict) -> MutationResult:
        return await self._create(payload)

    async def update_return(self, return_id: str, payload: dict) -> MutationResult:
        return await self._update(return_id, payload)

    async def delete_return(self, return_id: str) -> MutationResult:
        return await self._delete(return_id)

    async def process_return(self, return_id: str, decision: str, processed_by: str | None = None) -> MutationResult:
        body: dict[str, Any] = {"decision": decision}
        if processed_by:
            body["processed_by"] = processed_by
        return await self._mutate("processing", "POST", f"{self.path}/{return_id}/process", json=body)


class PurchaseReturnsHook(_ReturnsHook):
    path = "/api/purchase-returns"
    label = "purchase returns"

    @property
    def purchase_returns(self) -> list[dict]:
        return self.items


class SalesReturnsHook(_ReturnsHook):
    path = "/api/sales-returns"
    label = "sales returns"

    @property
    def sales_returns(self) -> list[dict]:
        return self.items


# =============================================================================
# Vouchers
# =============================================================================

class SalesVouchersHook(TableHook):
    path = "/api/sales-vouchers"
    item_key = "voucher"
    label = "sales vouchers"

    async def create_voucher(self, payload: dict) -> MutationResult:
        return await self._create(payload)

    async def update_voucher(self, voucher_id: str, payload: dict) -> MutationResult:
        return await self._update(voucher_id, payload)

    async def delete_voucher(self, voucher_id: str) -> MutationResult:
        return await self._delete(voucher_id)

    async def download_pdf(self, voucher_id: str, directory: str | os.PathLike) -> MutationResult:
        return await self._download(
            f"{self.path}/{voucher_id}/pdf",
            directory,
            f"sales-voucher-{voucher_id}.pdf",
        )


class PurchaseVouchersHook(TableHook):
    path = "/api/purchase-vouchers"
    item_key = "voucher"
    label = "purchase vouchers"

    async def create_voucher(self, payload: dict) -> MutationResult:
        return await self._create(payload)

    async def delete_voucher(self, voucher_id: str) -> MutationResult:
        return await self._delete(voucher_id)


# =============================================================================
# Administration
# =============================================================================

class CompaniesHook(TableHook):
    path = "/api/companies"
    item_key = "company"
    label = "companies"

    async def create_company(self, payload: dict) -> MutationResult:
        return await self._create(payload)

    async def update_company(self, company_id: str, payload: dict) -> MutationResult:
        return await self._update(company_id, payload)

    async def delete_company(self, company_id: str) -> MutationResult:
        return await self._delete(company_id)


class ProfilesHook(TableHook):
    path = "/api/admin/profiles"
    item_key = "profile"
    label = "profiles"

    async def create_user(
        self,
        *,
        username: str,
        email: str,
        password: str,
        role: str,
        company_id: str | None = None,
    ) -> MutationResult:
        """Provision identity + profile; data is ``{id, email, username}``."""
        return await self._mutate(
            "creating",
            "POST",
            "/api/admin/create-user",
            result_key="user",
            json={
                "username": username,
                "email": email,
                "password": password,
                "role": role,
                "company_id": company_id or "none",
            },
        )

    async def update_profile(self, profile_id: str, payload: dict) -> MutationResult:
        return await self._update(profile_id, payload)

    async def delete_profile(self, profile_id: str) -> MutationResult:
        return await self._delete(profile_id)
