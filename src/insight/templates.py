"""Project template catalogue used by onboarding."""

from __future__ import annotations

from pydantic import BaseModel

from insight.schemas.project import ProjectCategory


class ProjectTemplate(BaseModel):
    id: str
    name: str
    categories: list[ProjectCategory]
    description: str
    required_fields: list[str]

    def keywords(self) -> list[str]:
        """Lowercased category names, name words and description words."""
        words = [c.value for c in self.categories]
        words.extend(self.name.lower().split())
        words.extend(self.description.lower().split())
        return words


TEMPLATES: list[ProjectTemplate] = [
    ProjectTemplate(
        id="tech-startup",
        name="Tech Startup",
        categories=[ProjectCategory.TECH, ProjectCategory.BUSINESS],
        description="For technology startups and software projects",
        required_fields=["project_name", "goals", "owner", "timeline"],
    ),
    ProjectTemplate(
        id="community-event",
        name="Community Event",
        categories=[ProjectCategory.COMMUNITY],
        description="For organizing community events and gatherings",
        required_fields=["project_name", "goals", "owner", "timeline", "constraints"],
    ),
    ProjectTemplate(
        id="business-strategy",
        name="Business Strategy",
        categories=[ProjectCategory.BUSINESS, ProjectCategory.FINANCE],
        description="For business planning and strategic initiatives",
        required_fields=["project_name", "goals", "owner", "constraints"],
    ),
    ProjectTemplate(
        id="educational-program",
        name="Educational Program",
        categories=[ProjectCategory.EDUCATION],
        description="For educational programs and learning initiatives",
        required_fields=["project_name", "goals", "owner", "timeline"],
    ),
    ProjectTemplate(
        id="creative-project",
        name="Creative Project",
        categories=[ProjectCategory.CREATIVE],
        description="For creative projects, arts, design, and content creation",
        required_fields=["project_name", "goals", "owner"],
    ),
]

DEFAULT_TEMPLATE_ID = "tech-startup"


def get_template(template_id: str) -> ProjectTemplate | None:
    return next((t for t in TEMPLATES if t.id == template_id), None)


def templates_for_category(category: ProjectCategory | str) -> list[ProjectTemplate]:
    return [t for t in TEMPLATES if category in t.categories]
