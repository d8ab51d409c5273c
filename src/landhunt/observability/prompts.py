"""Prompt registry — versioned system prompts for MLflow tracking.

Keeps prompt strings in one versionable module so that each run can log the
exact prompt used, and prompt changes are decoupled from pipeline code.
"""

import logging

from landhunt.observability.tracing import log_text, set_tag

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Prompt versions
# ---------------------------------------------------------------------------

PARCEL_SCORES_PROMPT_V1 = """\
You are a UK land and planning analyst for Landhunt.
Given factual parcel data, you MUST output a single JSON object with numeric scores \
between 0 and 100, plus a recommended use and a short rationale.

Scores:
- development_potential (0-100)
- planning_probability (0-100)
- access_quality (0-100)
- constraint_severity (0-100, where higher = more severe constraints)
- marketability (0-100)
- density_potential (approx units per hectare, treat as 0-100 scale)
- recommended_use (string: e.g. "medium-density residential", "logistics", "care home", "light industrial")
- rationale (2-3 sentence explanation)

If data is missing, infer cautiously but still provide a numeric score.
If an existing planning summary or earlier scores are supplied, take them into account.

Return ONLY valid JSON, no markdown fences, no commentary:
{
  "development_potential": 0-100,
  "planning_probability": 0-100,
  "access_quality": 0-100,
  "constraint_severity": 0-100,
  "marketability": 0-100,
  "density_potential": 0-100,
  "recommended_use": "string",
  "rationale": "string"
}\
"""

PLANNING_SUMMARY_PROMPT_V1 = """\
You are a UK planning consultant.
Given the full text of a planning application / decision, extract a structured summary.

Return strict JSON with fields:
{
  "decision": "approved" | "refused" | "pending" | "unknown",
  "summary": "2-3 sentence overview",
  "policies": ["list of key local/national policies referenced"],
  "material_issues": ["list of main material planning considerations"],
  "risks": ["list of risks / reasons for refusal / potential grounds for challenge"],
  "approval_probability": number between 0 and 1 or null if not applicable
}

Do not include any commentary outside JSON.\
"""

PASSPORT_NARRATIVE_PROMPT_V1 = """\
You are a UK land analyst. Write a concise, professional feasibility summary \
(max 200 words) for the parcel described below. Use plain prose: no headings, \
no bullet points, no markdown.\
"""

# Registry: name → (version, prompt_text)
_PROMPT_REGISTRY: dict[str, tuple[str, str]] = {
    "parcel_scores": ("v1", PARCEL_SCORES_PROMPT_V1),
    "planning_summary": ("v1", PLANNING_SUMMARY_PROMPT_V1),
    "passport_narrative": ("v1", PASSPORT_NARRATIVE_PROMPT_V1),
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_active_prompt(name: str) -> str:
    """Return the active prompt text for a given prompt name.

    Args:
        name: Prompt identifier (e.g., "parcel_scores").

    Returns:
        The prompt string.

    Raises:
        KeyError: If prompt name is not registered.
    """
    if name not in _PROMPT_REGISTRY:
        raise KeyError(f"Unknown prompt: {name!r}. Available: {list(_PROMPT_REGISTRY.keys())}")
    return _PROMPT_REGISTRY[name][1]


def get_prompt_version(name: str) -> str:
    """Return the version tag for a given prompt name."""
    if name not in _PROMPT_REGISTRY:
        raise KeyError(f"Unknown prompt: {name!r}. Available: {list(_PROMPT_REGISTRY.keys())}")
    return _PROMPT_REGISTRY[name][0]


def list_prompts() -> list[dict[str, str]]:
    """List all registered prompts with name and version."""
    return [{"name": name, "version": ver} for name, (ver, _) in _PROMPT_REGISTRY.items()]


def log_prompt_to_run(name: str) -> None:
    """Log the active prompt text as an MLflow artifact for the current run."""
    version, text = _PROMPT_REGISTRY[name]
    log_text(text, f"prompts/{name}_{version}.txt")
    set_tag(f"prompt_{name}_version", version)
    logger.debug("Logged prompt %s (%s) to MLflow run", name, version)
