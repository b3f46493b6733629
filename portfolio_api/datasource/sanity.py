"""
Sanity CMS data sources for portfolio content.

API Documentation: https://www.sanity.io/docs/http-query
Public datasets are served from the CDN; a token switches to the live API.
"""

from typing import Generic, TypeVar

from loguru import logger
from pydantic import ConfigDict, Field, StrictBool, StrictInt, StrictStr
from pydantic.alias_generators import to_camel

from portfolio_api.datasource.base import MINUTE_MS, BaseDataSource
from portfolio_api.services.client import BearerToken, ServiceClient
from portfolio_api.services.policy import ProviderConfig
from portfolio_api.services.validation import UpstreamModel

DOCUMENT_FIELDS = "_id, _type, _createdAt, _updatedAt"


class SanityDocument(UpstreamModel):
    """System fields every document carries. Serialized back under the same names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: StrictStr = Field(alias="_id")
    type: StrictStr = Field(alias="_type")
    created_at: StrictStr = Field(alias="_createdAt")
    updated_at: StrictStr = Field(alias="_updatedAt")


D = TypeVar("D", bound=SanityDocument)


class Experience(SanityDocument):
    company: StrictStr
    position: StrictStr
    location: StrictStr
    start_date: StrictStr
    end_date: StrictStr | None = None
    current: StrictBool | None = None
    description: StrictStr
    responsibilities: list[StrictStr]
    technologies: list[StrictStr]
    company_url: StrictStr | None = None
    order: StrictInt | None = None


class Slug(UpstreamModel):
    current: StrictStr


class Project(SanityDocument):
    title: StrictStr
    slug: Slug
    description: StrictStr
    long_description: StrictStr | None = None
    technologies: list[StrictStr] | None = None
    github_url: StrictStr | None = None
    live_url: StrictStr | None = None
    featured: StrictBool | None = None
    order: StrictInt | None = None


class Certification(SanityDocument):
    title: StrictStr
    issuer: StrictStr
    issue_date: StrictStr
    expiry_date: StrictStr | None = None
    credential_id: StrictStr | None = None
    credential_url: StrictStr | None = None
    description: StrictStr | None = None
    skills: list[StrictStr] | None = None
    order: StrictInt | None = None


class QueryResult(UpstreamModel, Generic[D]):
    result: list[D]


class SanitySource(BaseDataSource[list[D]]):
    """
    One GROQ query per content type.

    Content pages render their own error state, so failures with nothing
    cached are surfaced as 500.
    """

    DOCUMENT_TYPE: str
    PROJECTION: str
    ORDERING: str
    CONFIG = ProviderConfig(ttl_ms=5 * MINUTE_MS)

    def __init__(
        self,
        project_id: str,
        dataset: str,
        api_version: str,
        client: ServiceClient,
        token: str | None = None,
    ):
        super().__init__(client)
        self.project_id = project_id
        self.dataset = dataset
        self.api_version = api_version
        self.token = token

    @property
    def base_url(self) -> str:
        host = "api.sanity.io" if self.token else "apicdn.sanity.io"
        return f"https://{self.project_id}.{host}/v{self.api_version}"

    @property
    def query(self) -> str:
        return (
            f'*[_type == "{self.DOCUMENT_TYPE}"] | order({self.ORDERING}) '
            f"{{ {DOCUMENT_FIELDS}, {self.PROJECTION} }}"
        )

    def missing_settings(self) -> list[str]:
        required = {
            "SANITY_PROJECT_ID": self.project_id,
            "SANITY_DATASET": self.dataset,
        }
        return [name for name, value in required.items() if not value]

    async def fetch_raw(self) -> object:
        return await self.client.request_json(
            service_id=self.SERVICE_ID,
            url=f"{self.base_url}/data/query/{self.dataset}",
            params={"query": self.query},
            credentials=BearerToken(self.token) if self.token else None,
        )

    def transform(self, payload: QueryResult[D]) -> list[D]:
        logger.info(f"Fetched {len(payload.result)} {self.DOCUMENT_TYPE} documents")
        return list(payload.result)


class ExperienceSource(SanitySource[Experience]):
    SERVICE_ID = "experiences"
    DOCUMENT_TYPE = "experience"
    UPSTREAM_SCHEMA = QueryResult[Experience]
    ORDERING = "order asc, startDate desc"
    PROJECTION = (
        "company, position, location, startDate, endDate, current, description, "
        "responsibilities, technologies, companyUrl, order"
    )


class ProjectSource(SanitySource[Project]):
    SERVICE_ID = "projects"
    DOCUMENT_TYPE = "project"
    UPSTREAM_SCHEMA = QueryResult[Project]
    ORDERING = "order asc, _createdAt desc"
    PROJECTION = (
        "title, slug, description, longDescription, technologies, githubUrl, "
        "liveUrl, featured, order"
    )


class CertificationSource(SanitySource[Certification]):
    SERVICE_ID = "certifications"
    DOCUMENT_TYPE = "certification"
    UPSTREAM_SCHEMA = QueryResult[Certification]
    ORDERING = "order asc, issueDate desc"
    PROJECTION = (
        "title, issuer, issueDate, expiryDate, credentialId, credentialUrl, "
        "description, skills, order"
    )
