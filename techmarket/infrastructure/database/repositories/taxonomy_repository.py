"""Service taxonomy repository implementation."""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from techmarket.application.interfaces.repositories import TaxonomyRepositoryInterface
from techmarket.domain.entities.taxonomy import Skill
from techmarket.infrastructure.database.models.taxonomy import (
    ServiceCategoryModel,
    ServiceDomainModel,
    ServiceSubCategoryModel,
    SkillModel,
)


class TaxonomyRepository(TaxonomyRepositoryInterface):
    """Batched title lookups: one query per relation, whatever the id count."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_domain_titles(self, domain_ids: Iterable[str]) -> Dict[str, str]:
        stmt = select(ServiceDomainModel.id, ServiceDomainModel.title).where(
            ServiceDomainModel.id.in_(list(domain_ids))
        )
        result = await self.db.execute(stmt)
        return {row.id: row.title for row in result}

    async def get_category_titles(self, category_ids: Iterable[str]) -> Dict[str, str]:
        stmt = select(ServiceCategoryModel.id, ServiceCategoryModel.title).where(
            ServiceCategoryModel.id.in_(list(category_ids))
        )
        result = await self.db.execute(stmt)
        return {row.id: row.title for row in result}

    async def get_skills(self, skill_ids: Iterable[str]) -> Dict[str, Skill]:
        stmt = select(SkillModel).where(SkillModel.id.in_(list(skill_ids)))
        result = await self.db.execute(stmt)
        return {model.id: self._to_skill(model) for model in result.scalars().all()}

    async def get_skills_by_domain(
        self, domain_ids: Iterable[str]
    ) -> Dict[str, List[Skill]]:
        stmt = select(SkillModel).where(SkillModel.domain_id.in_(list(domain_ids)))
        result = await self.db.execute(stmt)

        skills = defaultdict(list)
        for model in result.scalars().all():
            skills[model.domain_id].append(self._to_skill(model))
        return dict(skills)

    async def get_warranty_days(
        self, sub_category_id: Optional[str], category_id: Optional[str]
    ) -> Optional[int]:
        """Sub-category warranty first, then the category's."""
        if sub_category_id:
            stmt = select(ServiceSubCategoryModel.warranty_days).where(
                ServiceSubCategoryModel.id == sub_category_id
            )
            days = (await self.db.execute(stmt)).scalar_one_or_none()
            if days is not None:
                return days

        if category_id:
            stmt = select(ServiceCategoryModel.warranty_days).where(
                ServiceCategoryModel.id == category_id
            )
            return (await self.db.execute(stmt)).scalar_one_or_none()

        return None

    @staticmethod
    def _to_skill(model: SkillModel) -> Skill:
        return Skill(id=model.id, title=model.title, domain_id=model.domain_id)
