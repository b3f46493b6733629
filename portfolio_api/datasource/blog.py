"""
Hashnode data source for recent blog posts.

API Documentation: https://apidocs.hashnode.com
GraphQL endpoint; public posts are readable without a token.
"""

from loguru import logger
from pydantic import StrictStr

from portfolio_api.datasource.base import DAY_MS, BaseDataSource, ResponseModel
from portfolio_api.services.client import BearerToken, ServiceClient
from portfolio_api.services.policy import ProviderConfig
from portfolio_api.services.validation import UpstreamModel

PAGE_SIZE = 10

POSTS_QUERY = """
query UserPosts($username: String!, $page: Int!, $pageSize: Int!) {
  user(username: $username) {
    posts(page: $page, pageSize: $pageSize) {
      edges {
        node {
          title
          slug
          publishedAt
          brief
        }
      }
    }
  }
}
"""


class HashnodePost(UpstreamModel):
    title: StrictStr
    slug: StrictStr
    publishedAt: StrictStr
    brief: StrictStr


class HashnodeEdge(UpstreamModel):
    node: HashnodePost


class HashnodePosts(UpstreamModel):
    edges: list[HashnodeEdge]


class HashnodeUser(UpstreamModel):
    posts: HashnodePosts


class HashnodeData(UpstreamModel):
    user: HashnodeUser | None = None


class HashnodeResponse(UpstreamModel):
    data: HashnodeData


class BlogPost(ResponseModel):
    title: str
    slug: str
    published_at: str
    excerpt: str


class BlogSource(BaseDataSource[list[BlogPost]]):
    """Latest posts in publication order, newest first as Hashnode returns them."""

    GRAPHQL_URL = "https://gql.hashnode.com/"
    SERVICE_ID = "blog"
    UPSTREAM_SCHEMA = HashnodeResponse
    CONFIG = ProviderConfig(ttl_ms=DAY_MS)

    def __init__(self, username: str, client: ServiceClient, token: str | None = None):
        super().__init__(client)
        self.username = username
        self.token = token

    def missing_settings(self) -> list[str]:
        return [] if self.username else ["HASHNODE_USERNAME"]

    async def fetch_raw(self) -> object:
        return await self.client.request_graphql(
            service_id=self.SERVICE_ID,
            url=self.GRAPHQL_URL,
            query=POSTS_QUERY,
            variables={"username": self.username, "page": 1, "pageSize": PAGE_SIZE},
            credentials=BearerToken(self.token) if self.token else None,
        )

    def transform(self, payload: HashnodeResponse) -> list[BlogPost]:
        user = payload.data.user
        if user is None:
            logger.warning(f"Hashnode user {self.username} not found")
            return []

        posts = [
            BlogPost(
                title=edge.node.title,
                slug=edge.node.slug,
                published_at=edge.node.publishedAt,
                excerpt=edge.node.brief,
            )
            for edge in user.posts.edges
        ]
        logger.info(f"Fetched {len(posts)} blog posts")
        return posts
