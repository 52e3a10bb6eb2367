"""
UI Generator Agent

Single-shot worker that describes a UI layout as a tree of shadcn/ui
components. Writes the ``ui_result`` terminal key.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from switchyard.core.agent import Agent
from switchyard.core.state import RESULT_TYPE, UI_RESULT, StateStore
from switchyard.core.tool import Tool, ToolParams, done_tool
from switchyard.schemas import UIComponent, UISpec

NAME = "UI Generator Agent"

UIKind = Literal[
    "form", "card", "dashboard", "modal", "table", "navigation",
    "profile", "settings", "landing", "auth", "custom",
]

INSTRUCTIONS = """You are a UI generation specialist who builds layouts from shadcn/ui components.

UI types: form, card, dashboard, modal, table, navigation, profile, settings,
landing, auth, custom.

Components include Button, Input, Textarea, Label, Checkbox, Switch, Select,
Card, CardHeader, CardTitle, CardDescription, CardContent, CardFooter, Alert,
Badge, Avatar, Table, TableHeader, TableBody, TableRow, TableCell, Dialog,
Tabs, Accordion, Progress, Separator, Form, FormField, FormItem, FormLabel.

Every component needs a "type" (the component name), optional "props" and
optional "children". Call generate_ui once, then call done with a short
message for the user."""


class ComponentParams(ToolParams):
    type: str = Field(description="Component type (e.g., Button, Input, Card)")
    props: dict[str, Any] | None = Field(default=None, description="Component properties")
    children: list[Any] | None = Field(default=None, description="Child components")


class GenerateUIParams(ToolParams):
    type: UIKind = Field(description="Type of UI component or layout to generate")
    title: str = Field(description="Title or heading for the UI component")
    components: list[ComponentParams] = Field(description="Array of component specifications to render")
    layout: Literal["vertical", "horizontal", "grid", "flex"] | None = Field(default=None, description="Layout style")
    theme: Literal["default", "dark", "light"] | None = Field(default=None, description="Theme variant")


def clean_components(components: Any) -> list[UIComponent]:
    """Recursively drop anything that is not a component with a type."""
    if not isinstance(components, list):
        return []

    cleaned = []
    for comp in components:
        if isinstance(comp, ComponentParams):
            comp = comp.model_dump()
        if not isinstance(comp, dict) or not comp.get("type"):
            continue
        children = comp.get("children")
        cleaned.append(UIComponent(
            type=str(comp["type"]),
            props=comp.get("props") if isinstance(comp.get("props"), dict) else {},
            children=clean_components(children) if children else None,
        ))
    return cleaned


def _count(components: list[UIComponent]) -> int:
    return sum(1 + _count(c.children or []) for c in components)


def generate_ui(params: GenerateUIParams, state: StateStore) -> str:
    components = clean_components(params.components)
    spec = UISpec(
        action=f"generate_{params.type}",
        title=params.title,
        components=components,
        layout=params.layout or "vertical",
        theme=params.theme or "default",
    )
    state.set(UI_RESULT, spec.model_dump(by_alias=True, exclude_none=True))
    state.set(RESULT_TYPE, "component")
    return f'Created {params.type} UI component titled "{params.title}" with {_count(components)} components.'


def create_ui_agent() -> Agent:
    return Agent(
        name=NAME,
        description="An expert at creating UI components and layouts using shadcn/ui",
        instructions=INSTRUCTIONS,
        tools=(
            Tool("generate_ui", "Generate UI components and layouts using shadcn/ui components",
                 GenerateUIParams, generate_ui),
            done_tool("Call this when the UI component is complete and ready"),
        ),
    )
