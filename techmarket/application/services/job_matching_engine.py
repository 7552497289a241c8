"""
Job Matching Engine: geo and skill eligibility of technicians for a job.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from techmarket.application.interfaces.repositories import TaxonomyRepositoryInterface
from techmarket.config.logging import get_logger
from techmarket.domain.entities.job import Job
from techmarket.domain.entities.taxonomy import Skill
from techmarket.domain.entities.technician import Technician

logger = get_logger(__name__)

DEFAULT_SERVICE_RADIUS_KM = 50.0


@dataclass
class TaxonomySnapshot:
    """Titles resolved for one matching run."""

    domain_titles: Dict[str, str] = field(default_factory=dict)
    category_titles: Dict[str, str] = field(default_factory=dict)
    skills: Dict[str, Skill] = field(default_factory=dict)
    domain_skills: Dict[str, List[Skill]] = field(default_factory=dict)


@dataclass
class MatchDecision:
    """Outcome of evaluating one technician against one job."""

    technician_id: str
    eligible: bool
    location_match: bool
    location_reason: str
    skill_match: bool
    skill_reason: str


def match_location(
    job: Job, technician: Technician, default_radius_km: float = DEFAULT_SERVICE_RADIUS_KM
) -> Tuple[bool, str]:
    """Apply the location rules in priority order.

    Missing data fails open: a job or technician without usable location is
    never excluded on location alone, unless both give a place name and the
    names differ.
    """
    job_point = job.location
    tech_point = technician.location

    if job_point and tech_point:
        distance = job_point.distance_km(tech_point)
        radius = technician.effective_radius_km(default_radius_km)
        if distance <= radius:
            return True, f"distance: {distance:.2f}km within radius: {radius:g}km"
        return False, f"distance: {distance:.2f}km exceeds radius: {radius:g}km"

    if job.city and technician.place_name:
        if job.city.strip().lower() == technician.place_name.strip().lower():
            return True, f"city match: {job.city}"
        return False, f'city mismatch: "{job.city}" vs "{technician.place_name}"'

    if not job_point and not tech_point:
        return True, "neither has location data - allowing match"

    if not job_point:
        return True, "job location not set - allowing match"

    return True, "technician location not set - allowing match as fallback"


def match_skill(
    job: Job, technician: Technician, taxonomy: TaxonomySnapshot
) -> Tuple[bool, str]:
    """Apply the skill rules; the first rule that succeeds wins."""
    skills = technician.primary_skills
    labels = technician.service_categories
    domain_title = taxonomy.domain_titles.get(job.service_domain_id)

    # 1. domain match, only when the domain resolved
    if domain_title is not None:
        if any(
            ref.domain_id == job.service_domain_id or ref.domain_title == domain_title
            for ref in skills
        ):
            return True, f"skill domain match: {domain_title}"

        domain_skills = taxonomy.domain_skills.get(job.service_domain_id, [])
        for ref in skills:
            for skill in domain_skills:
                if (ref.skill_id and ref.skill_id == skill.id) or (
                    ref.title and ref.title == skill.title
                ):
                    return True, f"skill in domain {domain_title}: {skill.title}"

    # 2. category labels against the domain title, then the exact category title
    if labels and domain_title is not None:
        lowered = domain_title.lower()
        for label in labels:
            label_lowered = label.lower()
            if label_lowered in lowered or lowered in label_lowered:
                return True, f"service category matches domain: {domain_title}"

    category_title = taxonomy.category_titles.get(job.service_category_id)
    if labels and category_title is not None and category_title in labels:
        return True, f"service category match: {category_title}"

    # 3. explicit skill id, directly or by resolved title
    if job.skill_id and skills:
        skill = taxonomy.skills.get(job.skill_id)
        if skill is not None and any(
            ref.skill_id == skill.id or (ref.title and ref.title == skill.title)
            for ref in skills
        ):
            return True, f"skill match: {skill.title}"

    # 4. skill-less technicians still see jobs with no explicit skill
    if not technician.has_skills() and not job.skill_id:
        return True, "no skills configured and no skill required - allowing match"

    return False, "no skill match"


def evaluate(
    job: Job,
    technician: Technician,
    taxonomy: TaxonomySnapshot,
    default_radius_km: float = DEFAULT_SERVICE_RADIUS_KM,
) -> MatchDecision:
    """Evaluate one technician; eligibility ignores location when the job has none."""
    location_match, location_reason = match_location(job, technician, default_radius_km)
    skill_match, skill_reason = match_skill(job, technician, taxonomy)
    if job.location is not None:
        eligible = location_match and skill_match
    else:
        eligible = skill_match
    return MatchDecision(
        technician_id=str(technician.id),
        eligible=eligible,
        location_match=location_match,
        location_reason=location_reason,
        skill_match=skill_match,
        skill_reason=skill_reason,
    )


def match(
    job: Job,
    technicians: Iterable[Technician],
    taxonomy: TaxonomySnapshot,
    default_radius_km: float = DEFAULT_SERVICE_RADIUS_KM,
) -> List[Technician]:
    """Return the eligible technicians, preserving input order."""
    candidates = []
    for technician in technicians:
        decision = evaluate(job, technician, taxonomy, default_radius_km)
        if decision.eligible:
            candidates.append(technician)
        else:
            logger.debug(
                "Technician skipped",
                job_id=str(job.id),
                technician_id=decision.technician_id,
                location_reason=decision.location_reason,
                skill_reason=decision.skill_reason,
            )
    return candidates


class JobMatchingEngine:
    """Loads taxonomy titles in batches and runs the pure matching rules."""

    def __init__(
        self,
        taxonomy_repo: TaxonomyRepositoryInterface,
        default_radius_km: Optional[float] = None,
    ):
        self.taxonomy_repo = taxonomy_repo
        self.default_radius_km = default_radius_km or DEFAULT_SERVICE_RADIUS_KM
        self.logger = logger

    async def load_taxonomy(self, jobs: Iterable[Job]) -> TaxonomySnapshot:
        """Resolve every distinct domain, category and skill id in one pass.

        A failed lookup is logged and leaves that relation unresolved, which
        makes the dependent rules non-matching instead of aborting the run.
        """
        jobs = list(jobs)
        domain_ids = {job.service_domain_id for job in jobs if job.service_domain_id}
        category_ids = {job.service_category_id for job in jobs if job.service_category_id}
        skill_ids = {job.skill_id for job in jobs if job.skill_id}

        snapshot = TaxonomySnapshot()
        if domain_ids:
            snapshot.domain_titles = await self._lookup(
                "domain", domain_ids, self.taxonomy_repo.get_domain_titles
            )
            snapshot.domain_skills = await self._lookup(
                "domain_skills", domain_ids, self.taxonomy_repo.get_skills_by_domain
            )
        if category_ids:
            snapshot.category_titles = await self._lookup(
                "category", category_ids, self.taxonomy_repo.get_category_titles
            )
        if skill_ids:
            snapshot.skills = await self._lookup(
                "skill", skill_ids, self.taxonomy_repo.get_skills
            )
        return snapshot

    async def _lookup(self, relation: str, ids, loader) -> dict:
        try:
            return await loader(sorted(ids))
        except Exception as e:
            self.logger.error(
                "Taxonomy lookup failed, treating relation as non-matching",
                relation=relation,
                ids=sorted(ids),
                error=str(e),
            )
            return {}

    async def find_candidates(
        self, job: Job, technicians: List[Technician]
    ) -> List[Technician]:
        """Find technicians eligible to be notified about ``job``."""
        taxonomy = await self.load_taxonomy([job])
        candidates = match(job, technicians, taxonomy, self.default_radius_km)

        self.logger.info(
            "Matched technicians for job",
            job_id=str(job.id),
            evaluated=len(technicians),
            matched=len(candidates),
        )
        return candidates

    async def filter_jobs_for_technician(
        self, technician: Technician, jobs: List[Job]
    ) -> List[Job]:
        """Keep the jobs ``technician`` is eligible for."""
        taxonomy = await self.load_taxonomy(jobs)
        return [
            job
            for job in jobs
            if evaluate(job, technician, taxonomy, self.default_radius_km).eligible
        ]
