"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CHANGECOV__SECTION__KEY)
3. Repo YAML (.changecov/config.yaml)
4. Global YAML (~/.config/changecov/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CHANGECOV__<SECTION>__<KEY>=<VALUE>

Examples:
    CHANGECOV__LOGGING__LEVEL=DEBUG
    CHANGECOV__SERVER__PORT=8080
    CHANGECOV__GIT__DIFF_BASE=origin/main
    CHANGECOV__GATE__MIN_COVERAGE_RATE=90
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CHANGECOV__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every merged sample.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ServerConfig(BaseModel):
    """Coverage ingestion server configuration.

    Env vars:
        CHANGECOV__SERVER__HOST: Bind address (default: 127.0.0.1)
        CHANGECOV__SERVER__PORT: Port number (default: 7655)
        CHANGECOV__SERVER__SHUTDOWN_TIMEOUT_SEC: Final report flush budget
    """

    host: str = Field(
        default="127.0.0.1",
        description="Bind address. Use 0.0.0.0 to accept uploads from other hosts.",
    )
    port: int = Field(
        default=7655,
        description="Server port for coverage uploads.",
    )
    shutdown_timeout_sec: float = Field(
        default=5.0,
        description="Upper bound for the final report flush on shutdown.",
    )
    max_payload_mb: int = Field(
        default=50,
        description="Reject coverage uploads larger than this (MB).",
    )

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (0 <= v <= 65535):
            raise ValueError(f"Port must be 0-65535, got {v}")
        return v


class SourcesConfig(BaseModel):
    """Which changed files take part in incremental coverage.

    Patterns are globs relative to the project root; a ``re:`` prefix marks a
    regular expression matched against the relative path. Exclude wins.

    Env vars:
        CHANGECOV__SOURCES__INCLUDE: JSON list of include patterns
        CHANGECOV__SOURCES__EXCLUDE: JSON list of exclude patterns
    """

    include: list[str] = Field(
        default_factory=lambda: ["src/**"],
        description="Include patterns. Empty list includes everything.",
    )
    exclude: list[str] = Field(
        default_factory=lambda: ["**/*.spec.ts", "**/*.test.ts", "**/node_modules/**"],
        description="Exclude patterns, applied after include.",
    )
    extensions: list[str] = Field(
        default_factory=lambda: [".js", ".jsx", ".ts", ".tsx", ".vue", ".mjs", ".cjs"],
        description="Source file extensions eligible for coverage.",
    )

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, v: list[str]) -> list[str]:
        return [ext if ext.startswith(".") else f".{ext}" for ext in v]


class GitConfig(BaseModel):
    """Git comparison configuration.

    Env vars:
        CHANGECOV__GIT__DIFF_BASE: Ref the working tree is compared against
    """

    diff_base: str = Field(
        default="main",
        description="Base ref for the diff (branch, tag or commit).",
    )


class GateConfig(BaseModel):
    """Quality gate thresholds. A threshold of null disables that gate.

    Env vars:
        CHANGECOV__GATE__MIN_COVERAGE_RATE: Minimum incremental coverage percent
        CHANGECOV__GATE__MAX_IMPACT_SIZE: Maximum impacted pages + components
        CHANGECOV__GATE__FAIL_ON_ERROR: Exit non-zero when a gate fails
    """

    min_coverage_rate: float | None = Field(
        default=80.0,
        description="Minimum incremental line coverage (percent, 0-100).",
    )
    max_impact_size: int | None = Field(
        default=None,
        description="Maximum number of impacted pages and components.",
    )
    fail_on_error: bool = Field(
        default=False,
        description="Turn a failing verdict into a non-zero CLI exit code.",
    )

    @field_validator("min_coverage_rate")
    @classmethod
    def validate_rate(cls, v: float | None) -> float | None:
        if v is not None and not (0 <= v <= 100):
            raise ValueError(f"Coverage rate must be 0-100, got {v}")
        return v


class ImpactConfig(BaseModel):
    """Dependency graph and impact classification.

    Env vars:
        CHANGECOV__IMPACT__ENABLED: Build the dependency graph on report
        CHANGECOV__IMPACT__HIGH_TOTAL: Impacted total above which impact is high
    """

    enabled: bool = Field(default=True, description="Compute blast radius on each report.")
    source_dir: str = Field(
        default="src",
        description="Directory (relative to root) scanned for the dependency graph.",
    )
    page_markers: list[str] = Field(
        default_factory=lambda: ["/pages/", "/views/"],
        description="Path fragments that classify a file as a page.",
    )
    component_markers: list[str] = Field(
        default_factory=lambda: ["/components/"],
        description="Path fragments that classify a file as a component.",
    )
    aliases: dict[str, str] = Field(
        default_factory=lambda: {"@/": "src/"},
        description="Import specifier prefixes mapped to root-relative directories.",
    )
    skip_dirs: list[str] = Field(
        default_factory=lambda: ["node_modules", "dist", ".git", ".coverage"],
        description="Directory names never descended into while scanning.",
    )
    high_total: int = Field(default=10, description="More impacted files than this is high.")
    high_pages: int = Field(default=3, description="More impacted pages than this is high.")
    medium_total: int = Field(default=5, description="More impacted files than this is medium.")
    medium_pages: int = Field(default=1, description="More impacted pages than this is medium.")
    test_command: str = Field(
        default="npx jest",
        description="Command prefix for the suggested regression run.",
    )

    @model_validator(mode="after")
    def validate_levels(self) -> "ImpactConfig":
        if self.medium_total > self.high_total or self.medium_pages > self.high_pages:
            raise ValueError("medium impact thresholds must not exceed high thresholds")
        return self


class ReportConfig(BaseModel):
    """Report generation configuration.

    Env vars:
        CHANGECOV__REPORT__INTERVAL_SEC: Minimum time between generations
        CHANGECOV__REPORT__OUTPUT_DIR: Output directory relative to root
    """

    interval_sec: float = Field(
        default=10.0,
        description="Minimum seconds between report generations while serving.",
    )
    output_dir: str = Field(
        default=".coverage",
        description="Directory for latest.json and report history.",
    )
    history_count: int = Field(
        default=15,
        description="Timestamped reports kept in the output directory.",
    )

    @field_validator("interval_sec")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"interval_sec must be >= 0, got {v}")
        return v


class BaselineConfig(BaseModel):
    """Baseline coverage snapshot.

    Env vars:
        CHANGECOV__BASELINE__AUTO_SAVE: Save the first merged map when absent
    """

    path: str = Field(default=".coverage/baseline.json", description="Relative to root.")
    auto_save: bool = Field(default=True, description="Save once on first report.")


class CacheConfig(BaseModel):
    """Dependency graph cache.

    Env vars:
        CHANGECOV__CACHE__DEPENDENCY_CACHE_PATH: Cache file, relative to root
    """

    dependency_cache_path: str = Field(
        default=".coverage/cache/dependency_graph.json",
        description="Content-hash keyed dependency records.",
    )


class ChangecovConfig(BaseModel):
    """Root configuration for changecov.

    All settings can be configured via:
    1. Environment variables: CHANGECOV__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    gate: GateConfig = Field(default_factory=GateConfig)
    impact: ImpactConfig = Field(default_factory=ImpactConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    baseline: BaselineConfig = Field(default_factory=BaselineConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
