"""
Job-title categorisation for directory records.

A title is matched against MANUAL_TITLE_MAPPINGS (exact) first, then against
each category's keywords in table order (case-insensitive substring), and
falls back to "Other".
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

OTHER_CATEGORY = "Other"
DEFAULT_CATEGORY_COLOUR = "#6B7280"


@dataclass(frozen=True)
class JobTitleCategory:
    name: str
    description: str
    colour: str
    keywords: tuple[str, ...]


_CATEGORIES = (
    JobTitleCategory(
        "Executive Leadership",
        "C-Suite, Directors, General Managers, and Senior Leadership",
        "#8B5CF6",
        (
            "CEO", "Chief Executive", "Managing Director", "General Manager", "Director",
            "Executive Director", "Associate Director", "Secretary", "Deputy Secretary",
            "Minister", "President", "Vice President", "Chief", "Head of", "GM",
            "CCO", "CTO", "Principal", "Commissioner", "Board Member", "Executive",
            "Chair", "Future Cities Leader", "National Executive", "Regional Executive",
            "Section Executive",
        ),
    ),
    JobTitleCategory(
        "Planning",
        "Strategic planners, traditional planning roles, urban planning, and assessment",
        "#3B82F6",
        (
            "Strategic Planner", "Strategy", "Strategic Planning", "Strategy Advisor",
            "Strategic", "Planning Officer", "Town Planner", "Urban Planner", "Planner",
            "Planning Manager", "Principal Planner", "Senior Planner",
            "Environmental Planner", "Transport Planner", "Planning",
        ),
    ),
    JobTitleCategory(
        "Policy",
        "Policy officers, policy analysts, and policy development roles",
        "#F59E0B",
        ("Policy Officer", "Policy Analyst", "Policy"),
    ),
    JobTitleCategory(
        "Development & Project Management",
        "Development managers, project officers, and project management",
        "#10B981",
        (
            "Development Manager", "Project Manager", "Project Officer", "Program Manager",
            "Project Coordinator", "Development Director", "Project Director",
            "Development", "Project", "Program", "Developer", "Implementation Officer",
            "Service Need Analysis",
        ),
    ),
    JobTitleCategory(
        "Financial",
        "Investment management and financial roles",
        "#8B5CF6",
        ("Investment Management",),
    ),
    JobTitleCategory(
        "Data & Analytics",
        "GIS, data analysis, technical, and analytics roles",
        "#EF4444",
        (
            "GIS", "Spatial", "Data Scientist", "Analyst", "Technical", "Geospatial",
            "Business Analyst", "Research", "Analytics", "Data", "Technical Officer",
            "Technology Solutions", "Online Processing",
        ),
    ),
    JobTitleCategory(
        "Architecture & Engineering",
        "Architects, engineers, surveyors, and design professionals",
        "#EC4899",
        (
            "Engineer", "Architect", "Surveyor", "Building Designer", "Designer",
            "Architectural Designer", "Concept Designer",
        ),
    ),
    JobTitleCategory(
        "Property & Asset Management",
        "Property management, asset management, and valuation roles",
        "#06B6D4",
        (
            "Property Officer", "Property Manager", "Asset Manager", "Valuer", "Property",
            "Asset", "Acquisition", "Valuation", "Land Services", "Graduate Valuer",
        ),
    ),
    JobTitleCategory(
        "Operations & Administration",
        "Operational management, administration, and support roles",
        "#84CC16",
        (
            "Manager", "Team Leader", "Coordinator", "Administration",
            "Executive Assistant", "Support", "Operations", "Customer Service",
            "Office Manager", "Administrative", "Customer Success", "Staff Officer",
            "Business Improvement", "Team Co-ordinator", "Contributions Officer",
        ),
    ),
    JobTitleCategory(
        "Consulting & Advisory",
        "External consultants, advisors, and advisory roles",
        "#8B5A2B",
        (
            "Consultant", "Advisory", "Associate", "Partner", "Freelance",
            "Principal Consultant", "Senior Consultant", "Advisor",
        ),
    ),
    JobTitleCategory(
        "Academic & Education",
        "Academic, education, research, and student roles",
        "#F97316",
        (
            "Professor", "Associate Professor", "Senior Lecturer", "Lecturer", "Student",
            "Graduate", "Research", "Researcher", "Academic", "University", "Education",
            "Teaching", "Student Landscape", "Graduate Strategic",
        ),
    ),
    JobTitleCategory(
        "Other Specialised Technical",
        "Other specialized technical and professional services",
        "#9333EA",
        (
            "Energy Rater", "Economist", "Legal", "Software Engineer",
            "Environmental Assistant", "Building Surveyor", "Urban Designer",
            "Public Domain Designer", "Urbanist", "Water Resource Officer", "Safety Officer",
            "Conveyancing Officer", "Commercial Specialist", "Transport NBC",
            "Climate Change Specialist", "Land Rights Officer",
        ),
    ),
)

JOB_TITLE_CATEGORIES: dict[str, JobTitleCategory] = {c.name: c for c in _CATEGORIES}

# Titles whose keyword match lands in the wrong bucket (or nowhere)
_MANUAL_TITLES: dict[str, tuple[str, ...]] = {
    "Executive Leadership": (
        "CEO", "Managing Director", "Chief Executive Officer", "Executive Director",
        "Minister for Lands and Property", "Government Architect", "Principal", "CCO", "CTO",
        "Non Executive Board Member", "Infrastructre Commissioner",
        "24 Hour Economy Commissioner (NSW)", "Chair - Hunter Chapter Committee",
        "National Executive Mine Closure", "Regional Executive", "Section Executive, Water",
        "National Executive - Ecology", "ED, Adaptation & Mitigation",
        "Masterplanned Communities NSW & ACT (UDIA Board Member)",
        "Deputy General Manger of Infrastructure", "Future Cities Leader",
        "National Industrial Lead", "Group Leader - Design ACT", "Lead Organiser",
    ),
    "Planning": (
        "Strategic Planner", "Senior Strategic Planner", "Principal Strategic Planner",
        "Planning Officer", "Senior Planning Officer", "Town Planner", "Urban Planner",
    ),
    "Policy": (
        "Policy Officer", "Policy Analyst", "Senior Policy Officer",
        "Senior Planning Policy Officer", "Principal Policy Officer",
    ),
    "Development & Project Management": (
        "Development Manager", "Senior Development Manager", "Project Manager",
        "Project Officer", "Developer", "Principal Implementation Officer",
        "Service Need Analysis",
    ),
    "Financial": ("Investment Management",),
    "Data & Analytics": (
        "GIS Manager", "GIS Specialist", "Data Scientist", "Senior Data Scientist",
        "Technology Solutions Lead", "DPHI Account Ececutive", "Environmental Assistant",
        "Senior Communications and Engagement Officer",
    ),
    "Architecture & Engineering": (
        "Architect", "Architectural Designer", "Building Designer", "Senior Concept Designer",
        "Architectural Graduate",
    ),
    "Property & Asset Management": (
        "Property Officer", "Senior Property Officer", "Asset Manager", "Valuer",
        "Graduate Valuer",
    ),
    "Operations & Administration": (
        "Manager", "Team Leader", "Coordinator", "Customer Success", "Staff Officer",
        "Business Improvement Officer", "Acting Business Improvement Specialist",
        "Team Co-ordinator", "Senior Contributions Officer", "Assistant Contributions Officer",
        "Senior Contracts Officer", "Online Processing", "BD",
    ),
    "Consulting & Advisory": (
        "Consultant", "Senior Consultant", "Associate", "Partner", "Principal, Government",
        "Principal, Communities and Social Performance",
    ),
    "Academic & Education": (
        "Graduate", "Student", "Senior Lecturer", "Student Landscape Architect",
    ),
    "Other Specialised Technical": (
        "Urban Designer", "Senior Urban Designer", "Public Domain Designer", "Senior Urbanist",
        "Building Surveyor", "Senior Building Surveyor", "Water Resource Officer",
        "Energy Rater", "Economist", "Principal Economist", "Water Regulation Officer",
        "Climate Change Specialist", "Senior Land Rights Officer",
        "Network & Safety Officer (Roads)", "Senior Commercial Specialist - Storage",
        "Snr Conveyancing Officer", "Transport NBC",
    ),
}

MANUAL_TITLE_MAPPINGS: dict[str, str] = {
    title: category for category, titles in _MANUAL_TITLES.items() for title in titles
}


def categorise_by_keyword(job_title: str | None) -> str:
    if not job_title or not job_title.strip():
        return OTHER_CATEGORY

    title = job_title.strip().lower()
    for category in _CATEGORIES:
        for keyword in category.keywords:
            if keyword.lower() in title:
                return category.name
    return OTHER_CATEGORY


def categorise_job_title(job_title: str | None) -> str:
    """Category name for a job title: manual mapping, then keywords, then "Other"."""
    if not job_title or not job_title.strip():
        return OTHER_CATEGORY

    title = job_title.strip()
    if title in MANUAL_TITLE_MAPPINGS:
        return MANUAL_TITLE_MAPPINGS[title]
    return categorise_by_keyword(title)


def category_colour(category: str) -> str:
    info = JOB_TITLE_CATEGORIES.get(category)
    return info.colour if info else DEFAULT_CATEGORY_COLOUR


def category_distribution(job_titles: Iterable[str | None]) -> dict[str, int]:
    """Count titles per category; every category (and "Other") is present."""
    distribution = {name: 0 for name in JOB_TITLE_CATEGORIES}
    distribution[OTHER_CATEGORY] = 0
    for title in job_titles:
        distribution[categorise_job_title(title)] += 1
    return distribution
