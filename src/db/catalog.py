# src/db/catalog.py
# brand and category repositories for the catalog back office
from __future__ import annotations

import uuid
from datetime import datetime
from math import ceil
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Set,
    Tuple,
    TypeVar,
)

import aiosqlite

from db.database import connect
from db.models import Brand, BulkOperationResult, Category, ListResult
from utils.errors import NotFoundError, StorefrontError
from utils.logger import get_logger
from utils.pure import generate_sku_prefix, generate_slug

_logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _now() -> str:
    return datetime.now().isoformat(timespec="seconds")


class _CatalogRepository(Generic[T]):
    """
    Shared CRUD for the brands and categories tables.

    Every single-row write opens its own connection and commits. The *_bulk
    variants run all rows on one connection and commit once: rows failing
    validation are reported in BulkOperationResult.failed, a database error
    rolls the whole batch back and is re-raised.
    """

    table: str = ""
    label: str = ""
    products_fk: str = ""  # column of products pointing at this table
    fields: Tuple[str, ...] = ()
    sort_fields: Tuple[str, ...] = ("name", "created_at", "product_count")
    extra_select: str = ""

    # ---------- row mapping ----------

    def _row_to_entity(self, row) -> T:
        raise NotImplementedError

    @property
    def _product_count_sql(self) -> str:
        return f"(SELECT COUNT(*) FROM products p WHERE p.{self.products_fk} = t.id)"

    @property
    def _select(self) -> str:
        return (
            f"SELECT t.*, {self._product_count_sql} AS product_count{self.extra_select}"
            f" FROM {self.table} t"
        )

    async def _fetch_one(
        self, conn: aiosqlite.Connection, where: str, params: Sequence[Any]
    ) -> Optional[T]:
        cur = await conn.execute(f"{self._select} WHERE {where};", params)
        row = await cur.fetchone()
        await cur.close()
        return self._row_to_entity(row) if row else None

    async def _fetch_all(
        self, conn: aiosqlite.Connection, where: str, params: Sequence[Any], order: str
    ) -> List[T]:
        cur = await conn.execute(f"{self._select} WHERE {where} ORDER BY {order};", params)
        rows = await cur.fetchall()
        await cur.close()
        return [self._row_to_entity(r) for r in rows]

    async def _require(self, conn: aiosqlite.Connection, entity_id: str) -> T:
        entity = await self._fetch_one(conn, "t.id = ?", (entity_id,))
        if entity is None:
            raise NotFoundError(f"{self.label} {entity_id} not found.")
        return entity

    async def _column_values(
        self, conn: aiosqlite.Connection, column: str, exclude_id: Optional[str] = None
    ) -> Set[str]:
        cur = await conn.execute(
            f"SELECT {column} FROM {self.table} WHERE id IS NOT ?;", (exclude_id,)
        )
        rows = await cur.fetchall()
        await cur.close()
        return {r[0] for r in rows}

    # ---------- filters ----------

    def _where(
        self,
        is_active: Optional[bool] = None,
        has_products: Optional[bool] = None,
        search: Optional[str] = None,
        **extra: Any,
    ) -> Tuple[str, List[Any]]:
        clauses, params = ["1 = 1"], []
        if is_active is not None:
            clauses.append("t.is_active = ?")
            params.append(int(is_active))
        if has_products is not None:
            clauses.append(f"{self._product_count_sql} {'>' if has_products else '='} 0")
        if search:
            term = f"%{search.strip().lower()}%"
            clauses.append("(LOWER(t.name) LIKE ? OR LOWER(COALESCE(t.description, '')) LIKE ?)")
            params.extend([term, term])
        if extra:
            raise ValueError(f"Unknown filter(s): {', '.join(sorted(extra))}")
        return " AND ".join(clauses), params

    # ---------- READ ----------

    async def find_by_id(self, entity_id: str) -> Optional[T]:
        async with connect() as conn:
            return await self._fetch_one(conn, "t.id = ?", (entity_id,))

    async def find_by_slug(self, slug: str) -> Optional[T]:
        async with connect() as conn:
            return await self._fetch_one(conn, "t.slug = ?", (slug,))

    async def find_many(
        self,
        sort_by: str = "name",
        sort_order: str = "asc",
        page: int = 1,
        limit: int = 20,
        **filters: Any,
    ) -> ListResult[T]:
        """
        Filtered, sorted, paginated listing.
        Filters: is_active, has_products, search (plus parent_id for categories).
        """
        if sort_by not in self.sort_fields:
            raise ValueError(f"Cannot sort by {sort_by!r}.")
        if sort_order not in ("asc", "desc"):
            raise ValueError("sort_order must be 'asc' or 'desc'.")
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be positive.")

        where, params = self._where(**filters)
        order_col = sort_by if sort_by == "product_count" else f"t.{sort_by}"
        order = f"{order_col} {sort_order.upper()}, t.name ASC"

        async with connect() as conn:
            cur = await conn.execute(
                f"SELECT COUNT(*) FROM {self.table} t WHERE {where};", params
            )
            total = (await cur.fetchone())[0]
            await cur.close()
            cur = await conn.execute(
                f"{self._select} WHERE {where} ORDER BY {order} LIMIT ? OFFSET ?;",
                (*params, limit, (page - 1) * limit),
            )
            rows = await cur.fetchall()
            await cur.close()

        return ListResult(
            items=[self._row_to_entity(r) for r in rows],
            total=int(total),
            page=page,
            limit=limit,
            total_pages=ceil(total / limit),
        )

    async def search(self, query: str, **options: Any) -> ListResult[T]:
        return await self.find_many(search=query, **options)

    # ---------- UTILITY ----------

    async def exists(self, entity_id: str) -> bool:
        return await self.find_by_id(entity_id) is not None

    async def exists_by_slug(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        async with connect() as conn:
            return slug in await self._column_values(conn, "slug", exclude_id)

    async def count(self, **filters: Any) -> int:
        where, params = self._where(**filters)
        async with connect() as conn:
            cur = await conn.execute(
                f"SELECT COUNT(*) FROM {self.table} t WHERE {where};", params
            )
            total = (await cur.fetchone())[0]
            await cur.close()
        return int(total)

    # ---------- write internals ----------

    async def _prepare(
        self,
        conn: aiosqlite.Connection,
        data: Mapping[str, Any],
        current: Optional[T] = None,
    ) -> Dict[str, Any]:
        """Validate data and return the column values to write."""
        unknown = set(data) - set(self.fields)
        if unknown:
            raise ValueError(f"Unknown field(s): {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = {
            k: v for k, v in data.items() if k not in ("name", "slug", "is_active")
        }
        if "name" in data or current is None:
            name = (data.get("name") or "").strip()
            if not name:
                raise ValueError(f"{self.label} name is required.")
            values["name"] = name
        if "is_active" in data:
            values["is_active"] = int(bool(data["is_active"]))

        exclude_id = getattr(current, "id", None)
        if data.get("slug"):
            slug = data["slug"].strip()
            if slug in await self._column_values(conn, "slug", exclude_id):
                raise ValueError(f"Slug '{slug}' is already in use.")
            values["slug"] = slug
        elif current is None:
            values["slug"] = generate_slug(
                values["name"], await self._column_values(conn, "slug")
            )
        return values

    async def _insert(self, conn: aiosqlite.Connection, data: Mapping[str, Any]) -> T:
        values = await self._prepare(conn, data)
        values["id"] = uuid.uuid4().hex
        values["created_at"] = values["updated_at"] = _now()
        columns = ", ".join(values)
        marks = ", ".join("?" for _ in values)
        await conn.execute(
            f"INSERT INTO {self.table}({columns}) VALUES ({marks});",
            tuple(values.values()),
        )
        return await self._require(conn, values["id"])

    async def _update(
        self, conn: aiosqlite.Connection, entity_id: str, data: Mapping[str, Any]
    ) -> T:
        current = await self._require(conn, entity_id)
        values = await self._prepare(conn, data, current)
        if not values:
            return current
        values["updated_at"] = _now()
        assignments = ", ".join(f"{col} = ?" for col in values)
        await conn.execute(
            f"UPDATE {self.table} SET {assignments} WHERE id = ?;",
            (*values.values(), entity_id),
        )
        return await self._require(conn, entity_id)

    async def _check_deletable(self, entity: T) -> None:
        if not entity.can_be_deleted():
            raise ValueError(f"{self.label} '{entity.name}' is still in use.")

    async def _delete(self, conn: aiosqlite.Connection, entity_id: str) -> Dict[str, str]:
        entity = await self._require(conn, entity_id)
        await self._check_deletable(entity)
        await conn.execute(f"DELETE FROM {self.table} WHERE id = ?;", (entity_id,))
        return {"id": entity_id}

    async def _single(self, op: Callable[[aiosqlite.Connection], Awaitable[R]]) -> R:
        async with connect() as conn:
            result = await op(conn)
            await conn.commit()
        return result

    async def _bulk(
        self,
        items: Iterable[Any],
        op: Callable[[aiosqlite.Connection, Any], Awaitable[R]],
    ) -> BulkOperationResult[R]:
        result: BulkOperationResult[R] = BulkOperationResult()
        async with connect() as conn:
            try:
                for item in items:
                    try:
                        result.success.append(await op(conn, item))
                    except (StorefrontError, ValueError) as e:
                        result.failed.append({"data": item, "error": str(e)})
                    result.total_processed += 1
                await conn.commit()
            except aiosqlite.Error:
                await conn.rollback()
                _logger.exception(f"Bulk operation on {self.table} rolled back")
                raise
        _logger.info(
            f"{self.table}: bulk processed {result.total_processed},"
            f" {len(result.failed)} failed"
        )
        return result

    # ---------- CREATE / UPDATE / DELETE ----------

    async def create(self, data: Mapping[str, Any]) -> T:
        return await self._single(lambda conn: self._insert(conn, data))

    async def create_bulk(self, data: Iterable[Mapping[str, Any]]) -> BulkOperationResult[T]:
        return await self._bulk(data, self._insert)

    async def update(self, entity_id: str, data: Mapping[str, Any]) -> T:
        return await self._single(lambda conn: self._update(conn, entity_id, data))

    async def update_bulk(
        self, updates: Iterable[Tuple[str, Mapping[str, Any]]]
    ) -> BulkOperationResult[T]:
        return await self._bulk(updates, lambda conn, u: self._update(conn, u[0], u[1]))

    async def delete(self, entity_id: str) -> None:
        await self._single(lambda conn: self._delete(conn, entity_id))

    async def delete_bulk(self, ids: Iterable[str]) -> BulkOperationResult[Dict[str, str]]:
        return await self._bulk(ids, self._delete)

    async def soft_delete(self, entity_id: str) -> T:
        """Mark as inactive instead of deleting."""
        return await self.update(entity_id, {"is_active": False})


class BrandRepository(_CatalogRepository[Brand]):
    table = "brands"
    label = "Brand"
    products_fk = "brand_id"
    fields = ("name", "slug", "description", "logo_url", "website_url", "is_active")

    def _row_to_entity(self, row) -> Brand:
        return Brand(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            description=row["description"],
            logo_url=row["logo_url"],
            website_url=row["website_url"],
            is_active=bool(row["is_active"]),
            product_count=int(row["product_count"]),
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
        )


class CategoryRepository(_CatalogRepository[Category]):
    table = "categories"
    label = "Category"
    products_fk = "category_id"
    fields = (
        "name",
        "slug",
        "parent_id",
        "sku_prefix",
        "description",
        "image_url",
        "is_active",
        "sort_order",
    )
    sort_fields = ("name", "sort_order", "created_at", "product_count")
    extra_select = (
        ", (SELECT COUNT(*) FROM categories ch WHERE ch.parent_id = t.id) AS child_count"
    )

    def _row_to_entity(self, row) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            parent_id=row["parent_id"],
            sku_prefix=row["sku_prefix"],
            description=row["description"],
            image_url=row["image_url"],
            is_active=bool(row["is_active"]),
            sort_order=int(row["sort_order"]),
            product_count=int(row["product_count"]),
            child_count=int(row["child_count"]),
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
        )

    def _where(self, parent_id: Optional[str] = None, **filters: Any) -> Tuple[str, List[Any]]:
        where, params = super()._where(**filters)
        if parent_id is not None:
            where += " AND t.parent_id = ?"
            params.append(parent_id)
        return where, params

    async def _descendant_ids(self, conn: aiosqlite.Connection, category_id: str) -> List[str]:
        found: List[str] = []
        frontier = [category_id]
        while frontier:
            marks = ", ".join("?" for _ in frontier)
            cur = await conn.execute(
                f"SELECT id FROM categories WHERE parent_id IN ({marks}) ORDER BY sort_order, name;",
                frontier,
            )
            frontier = [r[0] for r in await cur.fetchall()]
            await cur.close()
            found.extend(frontier)
        return found

    async def _prepare(
        self,
        conn: aiosqlite.Connection,
        data: Mapping[str, Any],
        current: Optional[Category] = None,
    ) -> Dict[str, Any]:
        values = await super()._prepare(conn, data, current)
        exclude_id = current.id if current else None
        values.pop("sku_prefix", None)
        if "parent_id" in data:
            values["parent_id"] = data["parent_id"] or None

        parent_id = data.get("parent_id")
        if parent_id:
            await self._require(conn, parent_id)
            if current and (
                parent_id == current.id
                or parent_id in await self._descendant_ids(conn, current.id)
            ):
                raise ValueError("A category cannot be moved under itself.")

        if data.get("sku_prefix"):
            prefix = data["sku_prefix"].strip().upper()
            if prefix in await self._column_values(conn, "sku_prefix", exclude_id):
                raise ValueError(f"SKU prefix '{prefix}' is already in use.")
            values["sku_prefix"] = prefix
        elif current is None:
            values["sku_prefix"] = generate_sku_prefix(
                values["name"], await self._column_values(conn, "sku_prefix")
            )
        return values

    # ---------- HIERARCHY ----------

    async def find_roots(self) -> List[Category]:
        async with connect() as conn:
            return await self._fetch_all(conn, "t.parent_id IS NULL", (), "t.sort_order, t.name")

    async def find_by_parent(self, parent_id: str) -> List[Category]:
        async with connect() as conn:
            return await self._fetch_all(
                conn, "t.parent_id = ?", (parent_id,), "t.sort_order, t.name"
            )

    async def exists_by_sku_prefix(
        self, sku_prefix: str, exclude_id: Optional[str] = None
    ) -> bool:
        async with connect() as conn:
            return sku_prefix.upper() in await self._column_values(
                conn, "sku_prefix", exclude_id
            )

    async def get_ancestors(self, category_id: str) -> List[Category]:
        """Parents of category_id, root first."""
        ancestors: List[Category] = []
        async with connect() as conn:
            current = await self._require(conn, category_id)
            seen = {current.id}
            while current.parent_id and current.parent_id not in seen:
                current = await self._require(conn, current.parent_id)
                seen.add(current.id)
                ancestors.append(current)
        ancestors.reverse()
        return ancestors

    async def get_descendants(self, category_id: str) -> List[Category]:
        """All categories below category_id, breadth first."""
        async with connect() as conn:
            await self._require(conn, category_id)
            ids = await self._descendant_ids(conn, category_id)
            return [await self._require(conn, i) for i in ids]

    async def move_category(
        self, category_id: str, new_parent_id: Optional[str] = None
    ) -> Category:
        return await self.update(category_id, {"parent_id": new_parent_id})
