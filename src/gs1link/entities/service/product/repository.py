"""Data-access layer for products."""

from __future__ import annotations

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from src.gs1link.core.errors import ConflictError, DependencyError, NotFoundError
from src.gs1link.entities.core._base import utcnow

from .entity import Product
from .shape import from_storage_shape, to_storage_shape
from .table import ProductTable

# Fields a replace never touches
_IMMUTABLE_COLUMNS = frozenset({"id", "gtin", "created_at"})


class ProductRepository:
    """Record store for products.

    Every write commits its own transaction, so a product is either fully
    stored or not at all. The unique index on ``gtin`` is what guarantees
    one product per GTIN; a losing concurrent insert surfaces as
    ``ConflictError``.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    @staticmethod
    def _to_entity(row: ProductTable) -> Product:
        return Product.model_validate(from_storage_shape(row.model_dump()))

    @staticmethod
    def _to_columns(product: Product) -> dict:
        return to_storage_shape(product.model_dump(by_alias=True))

    def _rollback(self) -> None:
        try:
            self._session.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed")

    def get(self, product_id: str) -> Product | None:
        try:
            row = self._session.get(ProductTable, product_id)
        except SQLAlchemyError as e:
            raise DependencyError("Record store unavailable") from e
        if row is None:
            return None
        return self._to_entity(row)

    def find_by_gtin(self, gtin: str) -> Product | None:
        statement = select(ProductTable).where(ProductTable.gtin == gtin)
        try:
            row = self._session.exec(statement).first()
        except SQLAlchemyError as e:
            raise DependencyError("Record store unavailable") from e
        if row is None:
            return None
        return self._to_entity(row)

    def list_all(self) -> list[Product]:
        """All products, newest first."""
        statement = select(ProductTable).order_by(col(ProductTable.created_at).desc())
        try:
            rows = self._session.exec(statement).all()
        except SQLAlchemyError as e:
            raise DependencyError("Record store unavailable") from e
        return [self._to_entity(row) for row in rows]

    def insert(self, product: Product) -> Product:
        row = ProductTable(**self._to_columns(product))
        self._session.add(row)
        try:
            self._session.commit()
        except IntegrityError as e:
            self._rollback()
            logger.info("Insert rejected by unique GTIN index: {}", product.gtin)
            raise ConflictError() from e
        except SQLAlchemyError as e:
            self._rollback()
            raise DependencyError("Failed to write product") from e
        self._session.refresh(row)
        return self._to_entity(row)

    def replace(self, product_id: str, product: Product) -> Product:
        """Overwrite every mutable column of an existing product.

        ``id``, ``gtin`` and ``created_at`` keep their stored values.
        """
        try:
            row = self._session.get(ProductTable, product_id)
        except SQLAlchemyError as e:
            raise DependencyError("Record store unavailable") from e
        if row is None:
            raise NotFoundError()

        for column, value in self._to_columns(product).items():
            if column not in _IMMUTABLE_COLUMNS:
                setattr(row, column, value)
        row.updated_at = utcnow()

        self._session.add(row)
        try:
            self._session.commit()
        except SQLAlchemyError as e:
            self._rollback()
            raise DependencyError("Failed to write product") from e
        self._session.refresh(row)
        return self._to_entity(row)

    def delete(self, product_id: str) -> Product:
        """Delete a product and return the removed snapshot."""
        try:
            row = self._session.get(ProductTable, product_id)
        except SQLAlchemyError as e:
            raise DependencyError("Record store unavailable") from e
        if row is None:
            raise NotFoundError()

        snapshot = self._to_entity(row)
        try:
            self._session.delete(row)
            self._session.commit()
        except SQLAlchemyError as e:
            self._rollback()
            raise DependencyError("Failed to delete product") from e
        return snapshot
