from pydantic import ConfigDict, Field, field_validator

from edge_auth.schemas.base import BaseSchema


class ProxyRoute(BaseSchema):
    """
    Mapping from a public path prefix to a backend.

    Built once at startup and never mutated.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    prefix: str
    backend_url: str
    rewrite_from: str
    rewrite_to: str
    header_overrides: dict[str, str] = Field(default_factory=dict)
    sensitive: bool = False

    @field_validator("prefix", "rewrite_from")
    @classmethod
    def validate_leading_slash(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("must start with '/'")

        return value.rstrip("/") or "/"

    @field_validator("backend_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def rewrite_path(self, path: str) -> str:
        """
        Substitute rewrite_from with rewrite_to at the start of the path.

        Paths that do not start with rewrite_from are returned unchanged.

        Example:
            ```python
            route.rewrite_path("/v1/auth/login")  # "/api/auth/login" for /v1 -> /api
            ```
        """
        if self.rewrite_from == "/":
            return self.rewrite_to.rstrip("/") + path

        if path == self.rewrite_from or path.startswith(f"{self.rewrite_from}/"):
            return self.rewrite_to.rstrip("/") + path[len(self.rewrite_from) :]

        return path

    def upstream_url(self, path: str, query: str = "") -> str:
        """Absolute backend URL for an inbound path and raw query string."""
        url = f"{self.backend_url}{self.rewrite_path(path)}"
        if query:
            url = f"{url}?{query}"

        return url
