"""
Legal Requirement Reconciler

Turns the AI collaborator's list of required documents into a comparison
against what a business has actually filed, stores the gaps as
MissingLegal / MissingProductLegal rows with their remediation steps, and
rebuilds the comparison later without calling the AI again.

Document types are compared exactly (case-sensitive). Products named by the
AI are matched to the business's products by exact name first, then by the
first product (lowest id) whose name contains the requested name.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from typing import Iterable, List, Optional, Sequence
import logging

from bizvest.database import utcnow
from bizvest.exceptions import NotFoundError
from bizvest.models.business import Business
from bizvest.models.product import Product, ProductLegal
from bizvest.models.legal import Legal, MissingLegal, MissingProductLegal, LegalStep
from bizvest.schemas.legal import (
    LegalComparison,
    LegalRequirement,
    LegalStepSchema,
    ProductLegalComparison,
)

logger = logging.getLogger(__name__)


def match_product(products: Sequence[Product], name: str) -> Optional[Product]:
    """Find the product a required-documents entry refers to.

    ``products`` must be ordered by id.
    """
    if not name:
        return None
    for product in products:
        if product.name == name:
            return product
    for product in products:
        if product.name and name in product.name:
            return product
    return None


def normalize_steps(steps: Iterable[LegalStepSchema]) -> List[LegalStepSchema]:
    """Order steps by their reported number and renumber them from 1."""
    ordered = sorted(steps, key=lambda step: step.step_number)
    return [
        LegalStepSchema(
            step_number=index,
            description=step.description,
            redirect_url=step.redirect_url,
        )
        for index, step in enumerate(ordered, start=1)
    ]


def tag_requirements(
    required: Iterable[LegalRequirement],
    owned_types: set,
) -> List[LegalRequirement]:
    """Tag each required type with whether a document of that type is owned.

    Duplicate types keep their first occurrence. Owned types carry no steps.
    """
    seen = set()
    tagged = []
    for item in required:
        if not item.type or item.type in seen:
            continue
        seen.add(item.type)
        has_legal = item.type in owned_types
        tagged.append(
            LegalRequirement(
                type=item.type,
                has_legal=has_legal,
                notes=item.notes,
                steps=[] if has_legal else normalize_steps(item.steps),
            )
        )
    return tagged


class LegalReconciler:
    """Reconcile, persist and reload legal comparisons for one business."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_business(self, business_id: int) -> Optional[Business]:
        result = await self.db.execute(
            select(Business).where(
                Business.id == business_id,
                Business.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def _get_products(self, business_id: int, with_missing: bool = False) -> List[Product]:
        options = [
            selectinload(Product.product_legals.and_(ProductLegal.deleted_at.is_(None))),
        ]
        if with_missing:
            options.append(
                selectinload(Product.missing_legals).selectinload(MissingProductLegal.steps)
            )
        result = await self.db.execute(
            select(Product)
            .where(Product.business_id == business_id, Product.deleted_at.is_(None))
            .options(*options)
            .order_by(Product.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def _get_legals(self, business_id: int) -> List[Legal]:
        result = await self.db.execute(
            select(Legal)
            .where(Legal.business_id == business_id, Legal.deleted_at.is_(None))
            .order_by(Legal.id)
        )
        return list(result.scalars().all())

    async def reconcile(
        self,
        business_id: int,
        required_documents: LegalComparison,
    ) -> LegalComparison:
        """Tag the AI's required documents with what the business owns."""
        legals = await self._get_legals(business_id)
        products = await self._get_products(business_id)

        comparison = LegalComparison(
            required=tag_requirements(
                required_documents.required,
                {legal.legal_type for legal in legals},
            )
        )

        # Entries naming the same product are merged before tagging
        matched: dict[int, tuple[Product, list[LegalRequirement]]] = {}
        for entry in required_documents.products:
            product = match_product(products, entry.product_name)
            if product is None:
                logger.debug(
                    "Dropping legal requirements for unknown product",
                    extra={"business_id": business_id, "product_name": entry.product_name},
                )
                continue
            matched.setdefault(product.id, (product, []))[1].extend(entry.required)

        for product, required in matched.values():
            owned = {doc.legal_type for doc in product.product_legals}
            comparison.products.append(
                ProductLegalComparison(
                    product_name=product.name,
                    required=tag_requirements(required, owned),
                )
            )

        return comparison

    async def persist(self, business_id: int, comparison: LegalComparison) -> None:
        """Replace the stored missing documents of a business in one transaction."""
        business = await self._get_business(business_id)
        if business is None:
            raise NotFoundError("Business", business_id)

        try:
            existing = await self.db.execute(
                select(MissingLegal)
                .where(MissingLegal.business_id == business_id)
                .options(selectinload(MissingLegal.steps))
            )
            for row in existing.scalars().all():
                await self.db.delete(row)

            product_ids = select(Product.id).where(Product.business_id == business_id)
            existing_product = await self.db.execute(
                select(MissingProductLegal)
                .where(MissingProductLegal.product_id.in_(product_ids))
                .options(selectinload(MissingProductLegal.steps))
            )
            for row in existing_product.scalars().all():
                await self.db.delete(row)

            await self.db.flush()

            for item in comparison.required:
                if item.has_legal:
                    continue
                self.db.add(
                    MissingLegal(
                        business_id=business_id,
                        legal_type=item.type,
                        notes=item.notes,
                        steps=self._build_steps(item.steps),
                    )
                )

            products = await self._get_products(business_id)
            for entry in comparison.products:
                product = match_product(products, entry.product_name)
                if product is None:
                    continue
                for item in entry.required:
                    if item.has_legal:
                        continue
                    self.db.add(
                        MissingProductLegal(
                            product_id=product.id,
                            legal_type=item.type,
                            notes=item.notes,
                            steps=self._build_steps(item.steps),
                        )
                    )

            business.legal_analyzed_at = utcnow()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Stored legal comparison",
            extra={
                "business_id": business_id,
                "missing_business_documents": sum(1 for i in comparison.required if not i.has_legal),
            },
        )

    @staticmethod
    def _build_steps(steps: Iterable[LegalStepSchema]) -> List[LegalStep]:
        return [
            LegalStep(
                step_number=step.step_number,
                description=step.description,
                redirect_url=step.redirect_url,
            )
            for step in normalize_steps(steps)
        ]

    async def load(self, business_id: int) -> Optional[LegalComparison]:
        """Rebuild the stored comparison, or None if the business was never analysed."""
        business = await self._get_business(business_id)
        if business is None or business.legal_analyzed_at is None:
            return None

        legals = await self._get_legals(business_id)
        missing_result = await self.db.execute(
            select(MissingLegal)
            .where(MissingLegal.business_id == business_id)
            .options(selectinload(MissingLegal.steps))
            .order_by(MissingLegal.id)
            .execution_options(populate_existing=True)
        )
        missing = list(missing_result.scalars().all())
        products = await self._get_products(business_id, with_missing=True)

        comparison = LegalComparison(
            required=self._merge(
                [(legal.legal_type, legal.notes) for legal in legals],
                sorted(missing, key=lambda row: row.id),
            )
        )
        for product in products:
            comparison.products.append(
                ProductLegalComparison(
                    product_name=product.name,
                    required=self._merge(
                        [(doc.legal_type, doc.notes) for doc in product.product_legals],
                        sorted(product.missing_legals, key=lambda row: row.id),
                    ),
                )
            )
        return comparison

    @staticmethod
    def _merge(owned, missing) -> List[LegalRequirement]:
        """Owned documents first, then stored gaps, one entry per type."""
        seen = set()
        merged = []
        for legal_type, notes in owned:
            if not legal_type or legal_type in seen:
                continue
            seen.add(legal_type)
            merged.append(LegalRequirement(type=legal_type, has_legal=True, notes=notes, steps=[]))
        for row in missing:
            if row.legal_type in seen:
                continue
            seen.add(row.legal_type)
            merged.append(
                LegalRequirement(
                    type=row.legal_type,
                    has_legal=False,
                    notes=row.notes,
                    steps=[
                        LegalStepSchema(
                            step_number=step.step_number,
                            description=step.description,
                            redirect_url=step.redirect_url,
                        )
                        for step in row.steps
                    ],
                )
            )
        return merged
