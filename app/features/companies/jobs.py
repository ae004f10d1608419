import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.jobs import Job
from app.features.companies.models import Company
from app.utils import get_logger


log = get_logger(__name__)


class SearchIndexJob(Job):
    """Push a company's searchable fields to the search service."""

    async def perform(self, db: AsyncSession, company_id: str) -> None:
        company = await db.get(Company, company_id)
        if company is None:
            log.info("Company %s is gone, removing it from the index", company_id)
            async with httpx.AsyncClient(base_url=config.SEARCH_URL, timeout=10) as client:
                response = await client.delete(f"/companies/_doc/{company_id}")
                if response.status_code != 404:
                    response.raise_for_status()
            return

        document = {"title": company.title, "plan": company.plan.value}
        async with httpx.AsyncClient(base_url=config.SEARCH_URL, timeout=10) as client:
            response = await client.put(f"/companies/_doc/{company.id}", json=document)
            response.raise_for_status()
        log.debug("Indexed company %s", company.id)
