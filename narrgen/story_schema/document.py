"""
Pydantic schemas for the model document.

These models define the JSON contract shared by every front end:

    {
      "modelType": "...",
      "startNode": "start",
      "flags": {"hasKey": false},
      "resources": {"gold": 0},
      "nodes": {
        "start": {
          "id": "start",
          "text": "...",
          "choices": [
            {"id": "c1", "text": "...", "target": "next",
             "conditions": [...], "effects": [...],
             "outcome": {"type": "ADD_ITEM", "value": "coin"}}
          ]
        }
      }
    }

Conditions and effects are tagged objects, or DSL text which is parsed on
load. Documents only describe structure; graph integrity is checked by the
validator afterwards.
"""

from __future__ import annotations
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..errors import DocumentError
from .dsl import parse_condition, parse_effect
from .types import (
    Choice,
    ChoiceOutcome,
    Condition,
    Effect,
    StoryModel,
    StoryNode,
    condition_from_dict,
    effect_from_dict,
)

Number = Union[int, float]


class OutcomeDocument(BaseModel):
    """Outcome tag consumed by the inventory extension."""
    type: str
    value: Optional[str] = None


class ChoiceDocument(BaseModel):
    id: str
    text: str = ""
    target: str = ""
    conditions: list[Union[dict[str, Any], str]] = Field(default_factory=list)
    effects: list[Union[dict[str, Any], str]] = Field(default_factory=list)
    outcome: Optional[OutcomeDocument] = None

    @field_validator("text", "target", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("conditions", "effects", mode="before")
    @classmethod
    def _none_as_list(cls, value: Any) -> Any:
        return [] if value is None else value


class NodeDocument(BaseModel):
    id: Optional[str] = None
    text: str = ""
    choices: list[ChoiceDocument] = Field(default_factory=list)

    @field_validator("text", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("choices", mode="before")
    @classmethod
    def _none_as_list(cls, value: Any) -> Any:
        return [] if value is None else value


class ModelDocument(BaseModel):
    """Top-level story model document."""
    model_type: str = Field("", alias="modelType")
    start_node: str = Field(alias="startNode")
    flags: dict[str, bool] = Field(default_factory=dict)
    resources: dict[str, Number] = Field(default_factory=dict)
    nodes: dict[str, NodeDocument]

    model_config = {"populate_by_name": True}

    @field_validator("flags", "resources", mode="before")
    @classmethod
    def _none_as_dict(cls, value: Any) -> Any:
        return {} if value is None else value


class SessionDocument(BaseModel):
    """Wire form of a session snapshot."""
    node_id: str = Field(alias="nodeId")
    flags: dict[str, bool] = Field(default_factory=dict)
    resources: dict[str, Number] = Field(default_factory=dict)
    variables: dict[str, Union[str, int, float, bool]] = Field(default_factory=dict)
    time: int = 0

    model_config = {"populate_by_name": True}


def _decode_condition(raw: Union[dict[str, Any], str], where: str) -> Condition | None:
    if isinstance(raw, str):
        return parse_condition(raw)
    try:
        return condition_from_dict(raw)
    except ValueError as e:
        raise DocumentError(f"Invalid condition at {where}: {e}") from e


def _decode_effect(raw: Union[dict[str, Any], str], where: str) -> Effect | None:
    if isinstance(raw, str):
        return parse_effect(raw)
    try:
        return effect_from_dict(raw)
    except ValueError as e:
        raise DocumentError(f"Invalid effect at {where}: {e}") from e


def _to_choice(doc: ChoiceDocument, where: str) -> Choice:
    conditions = [
        _decode_condition(raw, f"{where}.conditions[{i}]")
        for i, raw in enumerate(doc.conditions)
    ]
    effects = [
        _decode_effect(raw, f"{where}.effects[{i}]")
        for i, raw in enumerate(doc.effects)
    ]
    outcome = None
    if doc.outcome is not None:
        outcome = ChoiceOutcome(type=doc.outcome.type, value=doc.outcome.value)
    return Choice(
        id=doc.id,
        text=doc.text,
        target=doc.target,
        conditions=tuple(c for c in conditions if c is not None),
        effects=tuple(e for e in effects if e is not None),
        outcome=outcome,
    )


def parse_document(data: Any) -> StoryModel:
    """
    Convert a raw document (already JSON-decoded) into a StoryModel.

    Raises DocumentError when the document does not match the schema.
    Node ids default to their key in ``nodes``.
    """
    try:
        doc = ModelDocument.model_validate(data)
    except ValidationError as e:
        details = [
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        ]
        raise DocumentError("Model document is malformed", details) from e

    nodes: dict[str, StoryNode] = {}
    for key, node_doc in doc.nodes.items():
        node_id = node_doc.id if node_doc.id else key
        choices = tuple(
            _to_choice(choice_doc, f"nodes.{key}.choices[{i}]")
            for i, choice_doc in enumerate(node_doc.choices)
        )
        nodes[key] = StoryNode(id=node_id, text=node_doc.text, choices=choices)

    return StoryModel(
        start_node=doc.start_node,
        nodes=nodes,
        model_type=doc.model_type,
        flags=dict(doc.flags),
        resources=dict(doc.resources),
    )
