# src/hexguard/core/config.py
"""
Configuration schema and loading for hexguard runs.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction and resolved once per run.
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, model_validator

from hexguard.contracts import SafetyMode

DEFAULT_CONFIG_FILE = Path("hexguard.yaml")
DEFAULT_INJECTION_MARKER = "ALBATROSS-4141"


class CommandSettings(BaseModel):
    """Timeouts for the external commands the pipeline runs."""

    model_config = {"frozen": True}

    default_timeout_seconds: float = Field(
        default=300.0, gt=0, description="Timeout for ordinary commands"
    )
    evaluation_timeout_seconds: float = Field(
        default=600.0, gt=0, description="Timeout for each opencode diff evaluation"
    )
    verification_timeout_seconds: float = Field(
        default=900.0, gt=0, description="Timeout for each compile/test check"
    )
    remediation_timeout_seconds: float = Field(
        default=1200.0, gt=0, description="Timeout for the opencode remediation run"
    )
    push_timeout_seconds: float = Field(
        default=600.0, gt=0, description="Timeout for git push"
    )


class OpencodeSettings(BaseModel):
    """How the opencode assistant is launched inside docker."""

    model_config = {"frozen": True}

    image: str = Field(
        default="ghcr.io/anomalyco/opencode", description="Container image for opencode"
    )
    workspace_path: str = Field(
        default="/workspace", description="Mount point of the project checkout"
    )
    security_diff_path: str = Field(
        default="/tmp/dependency_diff.md",
        description="Read-only mount point of the diff in the hardened profile",
    )
    passthrough_env: tuple[str, ...] = Field(
        default=("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GH_TOKEN", "GITHUB_TOKEN"),
        description="Host environment variables forwarded into the container when set",
    )
    config_dir: Path = Field(
        default=Path("~/.config/opencode"), description="Host opencode config directory"
    )
    data_dir: Path = Field(
        default=Path("~/.local/share/opencode"), description="Host opencode data directory"
    )


class HexguardSettings(BaseModel):
    """Top-level configuration for one dependency update run.

    This is the single source of truth for the run. All settings are
    validated and frozen after construction.
    """

    model_config = {"frozen": True}

    # Target selection
    dep: str | None = Field(default=None, description="Dependency to update")
    random: bool = Field(
        default=False, description="Pick a random dependency with an available update"
    )

    # Publishing
    base: str = Field(default="main", description="Base branch for the pull request")
    model: str | None = Field(
        default="openai/gpt-5.3-codex", description="Model passed to opencode run --model"
    )

    # Policy and run mode
    block_breaking: bool = Field(
        default=False, description="Also block on breaking/compatibility concerns"
    )
    dry_run: bool = Field(
        default=False,
        description="Skip branch creation, commits, pushes, pull requests and issues",
    )
    verbose: bool = Field(default=False, description="Log detailed command output")
    allow_dirty: bool = Field(
        default=False, description="Skip the clean git worktree pre-check"
    )

    # Prompt-injection simulation
    simulate_injection: bool = Field(
        default=False, description="Run the prompt-injection simulation and exit"
    )
    injection_fixture: Path | None = Field(
        default=None, description="Markdown fixture evaluated by the simulation"
    )
    injection_marker: str = Field(
        default=DEFAULT_INJECTION_MARKER,
        min_length=1,
        description="Marker that reveals a successful injection",
    )

    # Subsystems
    diff_dir: Path = Field(
        default=Path("tmp/dependency_diffs"),
        description="Scratch directory for fetched dependency diffs",
    )
    commands: CommandSettings = Field(default_factory=CommandSettings)
    opencode: OpencodeSettings = Field(default_factory=OpencodeSettings)

    @model_validator(mode="after")
    def validate_target_selection(self) -> "HexguardSettings":
        """A dependency name and random selection are mutually exclusive."""
        if self.dep is not None and self.random:
            raise ValueError("use either a dependency argument or --random, not both")
        return self

    @model_validator(mode="after")
    def validate_simulation(self) -> "HexguardSettings":
        """The injection simulation never touches the repository."""
        if self.simulate_injection:
            if not self.dry_run:
                raise ValueError("--simulate-injection requires --dry-run")
            if self.injection_fixture is None:
                raise ValueError("--simulate-injection requires --injection-fixture PATH")
        return self

    @property
    def safety_mode(self) -> SafetyMode:
        return SafetyMode.STRICT if self.block_breaking else SafetyMode.SECURITY_ONLY


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value


def load_settings(
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> HexguardSettings:
    """Load settings from YAML file, environment and CLI overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. CLI overrides - highest priority
    2. Environment variables (HEXGUARD_*)
    3. Config file (hexguard.yaml when present, or config_path)
    4. Defaults from Pydantic schema - lowest priority

    Environment variable format: HEXGUARD_OPENCODE__IMAGE for nested keys.

    Args:
        config_path: Explicit YAML configuration file, or None to use
            ./hexguard.yaml when it exists
        overrides: Values given on the command line

    Returns:
        Validated HexguardSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If an explicit config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Explicit check for file existence (Dynaconf silently accepts missing files)
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    if config_path is not None:
        settings_files = [str(config_path)]
    elif DEFAULT_CONFIG_FILE.exists():
        settings_files = [str(DEFAULT_CONFIG_FILE)]
    else:
        settings_files = []

    dynaconf_settings = Dynaconf(
        envvar_prefix="HEXGUARD",
        settings_files=settings_files,
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; convert to lowercase for Pydantic
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {
        k.lower(): _lower_keys(v)
        for k, v in dynaconf_settings.as_dict().items()
        if k not in internal_keys
    }
    raw_config.update(overrides or {})
    return HexguardSettings(**raw_config)
