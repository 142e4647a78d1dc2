"""
Model Validation - Structural integrity checks for story models.

Validates that:
1. Node ids are unique, and choice ids are unique within their node
2. startNode, choice targets and goto targets name existing nodes
3. Every choice has a usable destination (a target or a goto effect)
4. The transition graph is acyclic, when circular references are disallowed

All checks run in one pass and every issue found is reported together.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence
import json

from ..errors import DocumentError, ErrorKind, NarrativeError
from ..observability.logging import get_logger
from .document import parse_document
from .resolver import group_of, resolve_node_id
from .types import Choice, GotoEffect, StoryModel, collect_goto_effects

log = get_logger(__name__)

_VISITING = 1
_DONE = 2


@dataclass(frozen=True)
class ValidatorOptions:
    """Options for validate_model / load_model."""
    allow_circular_references: bool = True


@dataclass(frozen=True)
class ValidationIssue:
    """A single structural problem found in a model."""
    kind: ErrorKind
    message: str
    node_id: str | None = None
    choice_id: str | None = None

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


@dataclass
class ValidationResult:
    """Result of validation: every issue found in the pass."""
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues

    def of_kind(self, kind: ErrorKind) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.kind == kind]

    def raise_for_issues(self) -> None:
        if self.issues:
            raise ModelValidationError(self.issues)


class ModelValidationError(NarrativeError):
    """Raised when a model fails validation; carries every issue found."""

    def __init__(self, issues: Sequence[ValidationIssue]):
        self.issues = list(issues)
        lines = "\n".join(f"  {issue}" for issue in self.issues)
        super().__init__(
            f"Model validation failed with {len(self.issues)} issue(s):\n{lines}",
            self.issues[0].kind if self.issues else ErrorKind.INVALID_DOCUMENT,
        )


def _where(node_id: str, choice_id: str) -> str:
    return f"(node: {node_id}, choice: {choice_id})"


def validate_model(
    model: StoryModel,
    options: ValidatorOptions | None = None,
    duplicate_node_ids: Iterable[str] = (),
) -> ValidationResult:
    """
    Validate a story model.

    ``duplicate_node_ids`` lists node keys that appeared more than once in
    the source document; a decoded mapping can no longer show them.
    """
    options = options or ValidatorOptions()
    issues: list[ValidationIssue] = []

    # Duplicate node ids
    reported: set[str] = set()
    for node_id in duplicate_node_ids:
        if node_id not in reported:
            reported.add(node_id)
            issues.append(ValidationIssue(
                ErrorKind.DUPLICATE_ID, f"Duplicate node ID '{node_id}'", node_id=node_id,
            ))
    seen_ids: set[str] = set()
    for key, node in model.nodes.items():
        if node.id in seen_ids:
            if node.id not in reported:
                reported.add(node.id)
                issues.append(ValidationIssue(
                    ErrorKind.DUPLICATE_ID, f"Duplicate node ID '{node.id}'", node_id=node.id,
                ))
        elif node.id != key:
            issues.append(ValidationIssue(
                ErrorKind.INVALID_DOCUMENT,
                f"Node key '{key}' does not match node ID '{node.id}'",
                node_id=node.id,
            ))
        seen_ids.add(node.id)

    if model.start_node not in model.nodes:
        issues.append(ValidationIssue(
            ErrorKind.MISSING_REFERENCE,
            f"startNode '{model.start_node}' does not exist",
            node_id=model.start_node,
        ))

    for key, node in model.nodes.items():
        group = group_of(key)
        choice_ids: set[str] = set()
        for choice in node.choices:
            if choice.id in choice_ids:
                issues.append(ValidationIssue(
                    ErrorKind.DUPLICATE_ID,
                    f"Duplicate choice ID '{choice.id}' {_where(key, choice.id)}",
                    node_id=key,
                    choice_id=choice.id,
                ))
            choice_ids.add(choice.id)
            issues.extend(_check_references(model, key, group, choice))

    if not options.allow_circular_references:
        issues.extend(_find_cycles(model))

    result = ValidationResult(issues=issues)
    if result.valid:
        log.info("model_validated", nodes=len(model.nodes), start_node=model.start_node)
    else:
        log.warning(
            "model_rejected",
            issues=len(issues),
            kinds=sorted({issue.kind.value for issue in issues}),
        )
    return result


def _check_references(
    model: StoryModel, node_id: str, group: str, choice: Choice
) -> list[ValidationIssue]:
    issues = []
    gotos = choice.goto_effects()

    if not choice.target:
        if not gotos:
            issues.append(ValidationIssue(
                ErrorKind.MISSING_REFERENCE,
                f"Choice '{choice.id}' is missing target {_where(node_id, choice.id)}",
                node_id=node_id,
                choice_id=choice.id,
            ))
    elif resolve_node_id(choice.target, group) not in model.nodes:
        issues.append(ValidationIssue(
            ErrorKind.MISSING_REFERENCE,
            f"Choice '{choice.id}' targets non-existent node '{choice.target}' "
            f"{_where(node_id, choice.id)}",
            node_id=node_id,
            choice_id=choice.id,
        ))

    for goto in gotos:
        if resolve_node_id(goto.target, group) not in model.nodes:
            issues.append(ValidationIssue(
                ErrorKind.MISSING_REFERENCE,
                f"Choice '{choice.id}' has goto effect targeting non-existent node "
                f"'{goto.target}' {_where(node_id, choice.id)}",
                node_id=node_id,
                choice_id=choice.id,
            ))
    return issues


def _choice_edges(model: StoryModel, group: str, choice: Choice) -> list[str]:
    """Possible destinations of a choice, as existing canonical ids."""
    top_level = [e for e in choice.effects if isinstance(e, GotoEffect)]
    nested = collect_goto_effects(e for e in choice.effects if not isinstance(e, GotoEffect))
    destinations = [top_level[-1].target] if top_level else [choice.target]
    destinations.extend(g.target for g in nested)

    edges: list[str] = []
    for target in destinations:
        resolved = resolve_node_id(target, group)
        if resolved in model.nodes and resolved not in edges:
            edges.append(resolved)
    return edges


def _transition_graph(model: StoryModel) -> dict[str, list[str]]:
    graph: dict[str, list[str]] = {}
    for key, node in model.nodes.items():
        group = group_of(key)
        edges: list[str] = []
        for choice in node.choices:
            for edge in _choice_edges(model, group, choice):
                if edge not in edges:
                    edges.append(edge)
        graph[key] = edges
    return graph


def _find_cycles(model: StoryModel) -> list[ValidationIssue]:
    """
    Depth-first search over the transition graph.

    Only an edge back to a node still on the current path is a cycle;
    reaching an already finished node (diamond convergence) is not.
    """
    graph = _transition_graph(model)
    marks: dict[str, int] = {}
    issues: list[ValidationIssue] = []
    seen_cycles: set[tuple[str, ...]] = set()

    roots = [model.start_node] if model.start_node in graph else []
    roots.extend(key for key in graph if key != model.start_node)

    for root in roots:
        if root in marks:
            continue
        path: list[str] = [root]
        stack = [(root, iter(graph[root]))]
        marks[root] = _VISITING

        while stack:
            node_id, edges = stack[-1]
            nxt = next(edges, None)
            if nxt is None:
                marks[node_id] = _DONE
                stack.pop()
                path.pop()
                continue

            mark = marks.get(nxt)
            if mark == _VISITING:
                cycle = tuple(path[path.index(nxt):] + [nxt])
                if cycle not in seen_cycles:
                    seen_cycles.add(cycle)
                    issues.append(ValidationIssue(
                        ErrorKind.CIRCULAR_REFERENCE,
                        f"Circular reference detected: {' → '.join(cycle)}",
                        node_id=nxt,
                    ))
            elif mark is None:
                marks[nxt] = _VISITING
                path.append(nxt)
                stack.append((nxt, iter(graph[nxt])))

    return issues


# ============================================================================
# Loading
# ============================================================================

def _decode_json(text: str) -> tuple[Any, list[str]]:
    """Decode JSON text, returning the data and any duplicate node keys."""
    duplicates: dict[int, list[str]] = {}

    def pairs_hook(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
        obj: dict[str, Any] = {}
        dups: list[str] = []
        for key, value in pairs:
            if key in obj:
                dups.append(key)
            obj[key] = value
        if dups:
            duplicates[id(obj)] = dups
        return obj

    try:
        data = json.loads(text, object_pairs_hook=pairs_hook)
    except json.JSONDecodeError as e:
        raise DocumentError("Model document is not valid JSON", [str(e)]) from e

    node_dups: list[str] = []
    if isinstance(data, dict) and isinstance(data.get("nodes"), dict):
        node_dups = duplicates.get(id(data["nodes"]), [])
    return data, node_dups


def load_model(
    raw: StoryModel | Mapping[str, Any] | str | bytes,
    options: ValidatorOptions | None = None,
) -> StoryModel:
    """
    Load and validate a story model.

    Accepts JSON text, an already-decoded document mapping, or a StoryModel.
    Returns the model unchanged in structure; ids are not canonicalized.
    Raises DocumentError for malformed documents and ModelValidationError
    carrying every structural issue found.
    """
    duplicates: list[str] = []
    if isinstance(raw, StoryModel):
        model = raw
    else:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        if isinstance(raw, str):
            raw, duplicates = _decode_json(raw)
        model = parse_document(raw)

    validate_model(model, options, duplicate_node_ids=duplicates).raise_for_issues()
    return model


def load_model_file(
    path: str | Path, options: ValidatorOptions | None = None
) -> StoryModel:
    """Load and validate a model from a JSON file."""
    text = Path(path).read_text(encoding="utf-8")
    return load_model(text, options)
