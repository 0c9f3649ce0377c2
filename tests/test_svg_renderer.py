"""Tests for the SVG template renderer."""
from datetime import date
from pathlib import Path
import pytest
from profile_stats.domain.models import CalendarWeek, ContributionDay, Language, StatsSnapshot
from profile_stats.infrastructure.svg_renderer import TemplateImageGenerator, replace_tags


TEMPLATES = Path(__file__).resolve().parent.parent / "resources" / "templates"


def _snapshot(**kwargs):
    defaults = dict(
        name="Octo <Cat>",
        stargazers=1234,
        forks=5,
        total_contributions=150,
        languages=(
            Language(name="Go", size=150, occurrences=2, color="#00ADD8", proportion=75.0),
            Language(name="Rust", size=50, occurrences=1, color="#dea584", proportion=25.0),
        ),
        repos=("octo/a", "octo/b"),
        lines_changed=(1000, 250),
        views=12,
        contribution_calendar=(
            CalendarWeek(days=(
                ContributionDay(date=date(2024, 1, 28), contribution_count=1, color="#9be9a8"),
                ContributionDay(date=date(2024, 1, 29), contribution_count=0, color="#ebedf0"),
            )),
            CalendarWeek(days=(
                ContributionDay(date=date(2024, 2, 4), contribution_count=2, color="#40c463"),
            )),
        ),
    )
    defaults.update(kwargs)
    return StatsSnapshot(**defaults)


@pytest.fixture
def renderer(tmp_path):
    return TemplateImageGenerator(TEMPLATES, tmp_path / "generated")


def test_replace_tags():
    assert replace_tags("{{ a }} and {{ b }} and {{ a }}", {"a": "1", "b": "2"}) == "1 and 2 and 1"


def test_generate_overview(renderer):
    output = renderer.generate_overview(_snapshot()).read_text(encoding="utf-8")

    assert "Octo &lt;Cat&gt;" in output
    assert "1,234" in output
    assert "1,250" in output
    assert ">12<" in output
    assert "{{" not in output


def test_generate_languages(renderer):
    output = renderer.generate_languages(_snapshot()).read_text(encoding="utf-8")

    assert "background-color: #00ADD8; width: 75.00%;" in output
    assert '<span class="lang">Rust</span>' in output
    assert "animation-delay: 150ms;" in output
    assert "{{" not in output


def test_generate_contributions_grid(renderer):
    output = renderer.generate_contributions_grid(_snapshot()).read_text(encoding="utf-8")

    assert output.count('class="contribution_cell"') == 3
    assert "animation-delay: 20ms;" in output
    assert 'x="40" y="40" class="month-label">Jan</text>' in output
    assert 'x="52" y="40" class="month-label">Feb</text>' in output
    assert "{{" not in output


def test_missing_template(tmp_path):
    renderer = TemplateImageGenerator(tmp_path / "nowhere", tmp_path / "out")

    with pytest.raises(FileNotFoundError):
        renderer.generate_overview(_snapshot())
