"""Built-in tools for the portfolio assistant.

Server tools read the knowledge base; client tools are declared here so the
model knows about them, but the browser executes them.
"""

import re
from functools import partial

from portfolio_agent.domain.tools.knowledge import KnowledgeBase
from portfolio_agent.domain.tools.models import (
    CopyToClipboardInput,
    EmptyInput,
    GetExperienceInput,
    GetTechnologiesInput,
    SetThemeInput,
)
from portfolio_agent.domain.tools.registry import ToolDeclaration, ToolRegistry

CLIENT_TOOL_NAMES = ("setTheme", "copyToClipboard")


def get_contact_info(params: EmptyInput, *, knowledge: KnowledgeBase) -> str:
    return knowledge.read("contact.md")


def get_experience(params: GetExperienceInput, *, knowledge: KnowledgeBase) -> str:
    content = knowledge.read("experience.md")
    if not params.query:
        return content

    needle = params.query.lower()
    matching = [line for line in content.split("\n") if needle in line.lower()]
    return "\n".join(matching) if matching else content


def get_technologies(params: GetTechnologiesInput, *, knowledge: KnowledgeBase) -> str:
    content = knowledge.read("technologies.md")
    if not params.category or params.category == "all":
        return content

    # Section runs from "## <category>" up to the next heading or end of file
    section = re.compile(rf"## {re.escape(params.category)}\n[\s\S]*?(?=##|$)", re.IGNORECASE)
    match = section.search(content)
    return match.group(0) if match else content


def server_tools(knowledge: KnowledgeBase) -> list[ToolDeclaration]:
    return [
        ToolDeclaration(
            name="getContactInfo",
            description=(
                "Get contact information including email, social links, and website. "
                "Use this when the user asks how to contact, reach out, or connect."
            ),
            input_model=EmptyInput,
            executor=partial(get_contact_info, knowledge=knowledge),
        ),
        ToolDeclaration(
            name="getExperience",
            description=(
                "Get work experience history with roles, companies, and descriptions. "
                "Use this when the user asks about work history, past jobs, or career."
            ),
            input_model=GetExperienceInput,
            executor=partial(get_experience, knowledge=knowledge),
        ),
        ToolDeclaration(
            name="getTechnologies",
            description=(
                "Get list of technologies and skills. Use this when the user asks about "
                "tech stack, skills, programming languages, or tools used."
            ),
            input_model=GetTechnologiesInput,
            executor=partial(get_technologies, knowledge=knowledge),
        ),
    ]


def client_tools() -> list[ToolDeclaration]:
    return [
        ToolDeclaration(
            name="setTheme",
            description=(
                "Switch the website theme between light and dark mode. Call this when the "
                "user asks to change the theme, switch appearance, or toggle between light "
                "and dark mode."
            ),
            input_model=SetThemeInput,
        ),
        ToolDeclaration(
            name="copyToClipboard",
            description="Copy text to the user's clipboard (e.g., email address, code snippets)",
            input_model=CopyToClipboardInput,
        ),
    ]


def build_default_registry(knowledge: KnowledgeBase) -> ToolRegistry:
    """Registry with every built-in tool, server tools first."""
    return ToolRegistry([*server_tools(knowledge), *client_tools()])
