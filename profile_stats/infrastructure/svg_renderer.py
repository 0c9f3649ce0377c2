"""SVG renderer filling ``{{ tag }}`` placeholders in template files."""
import html
import logging
from pathlib import Path
from typing import Dict, List, Tuple, Union
from profile_stats.domain.models import StatsSnapshot
from profile_stats.domain.renderer_interface import IStatsRenderer


logger = logging.getLogger(__name__)

_PROGRESS_ITEM = (
    '<span style="background-color: {color}; width: {proportion}%;" '
    'class="progress-item"></span>'
)

_LANGUAGE_ITEM = """<li style="animation-delay: {delay}ms;">
<svg xmlns="http://www.w3.org/2000/svg" class="octicon" style="fill:{color};"
viewBox="0 0 16 16" version="1.1" width="16" height="16"><path
fill-rule="evenodd" d="M8 4a4 4 0 100 8 4 4 0 000-8z"></path></svg>
<span class="lang">{name}</span>
<span class="percent">{proportion}%</span>
</li>
"""

_CELL = (
    '<div class="contribution_cell" '
    'style="background-color: {color}; animation-delay: {delay}ms;"></div>'
)

_MONTH_LABEL = (
    '<text style="animation-delay: {delay}ms" x="{x}" y="40" '
    'class="month-label">{month}</text>'
)


def replace_tags(content: str, replacements: Dict[str, str]) -> str:
    """Substitute every ``{{ tag }}`` occurrence with its value."""
    for tag, value in replacements.items():
        content = content.replace(f"{{{{ {tag} }}}}", value)
    return content


class TemplateImageGenerator(IStatsRenderer):
    """Writes overview, languages and contribution grid SVGs from templates."""

    def __init__(self, template_folder: Union[str, Path], output_folder: Union[str, Path]):
        self._template_folder = Path(template_folder)
        self._output_folder = Path(output_folder)

    def _render(self, template_name: str, replacements: Dict[str, str]) -> Path:
        template = (self._template_folder / template_name).read_text(encoding="utf-8")
        self._output_folder.mkdir(parents=True, exist_ok=True)
        output_file = self._output_folder / template_name
        output_file.write_text(replace_tags(template, replacements), encoding="utf-8")
        logger.info(f"Generated {output_file}")
        return output_file

    def generate_overview(self, snapshot: StatsSnapshot) -> Path:
        return self._render("overview.svg", {
            "name": html.escape(snapshot.name),
            "stars": f"{snapshot.stargazers:,}",
            "forks": f"{snapshot.forks:,}",
            "contributions": f"{snapshot.total_contributions:,}",
            "lines_changed": f"{snapshot.total_lines_changed:,}",
            "views": f"{snapshot.views:,}",
            "repos": f"{len(snapshot.repos):,}",
        })

    def generate_languages(self, snapshot: StatsSnapshot) -> Path:
        progress = []
        lang_list = []
        for index, language in enumerate(snapshot.languages):
            proportion = f"{language.proportion:.2f}"
            progress.append(_PROGRESS_ITEM.format(color=language.color, proportion=proportion))
            lang_list.append(_LANGUAGE_ITEM.format(
                delay=150 * index,
                color=language.color,
                name=html.escape(language.name),
                proportion=proportion
            ))
        return self._render("languages.svg", {
            "progress": "".join(progress),
            "lang_list": "".join(lang_list),
        })

    def generate_contributions_grid(self, snapshot: StatsSnapshot) -> Path:
        grid = []
        months: List[Tuple[str, int]] = []
        delay = 0

        for week_index, week in enumerate(snapshot.contribution_calendar):
            if week.days:
                # label a week by the month of its last day
                month = week.days[-1].date.strftime("%b")
                if not months or months[-1][0] != month:
                    months.append((month, week_index))

            grid.append("<div>")
            for day in week.days:
                grid.append(_CELL.format(color=day.color, delay=delay))
                delay += 10
            grid.append("</div>")

        labels = [
            _MONTH_LABEL.format(delay=150 * (position + 1), x=40 + week_index * 12, month=month)
            for position, (month, week_index) in enumerate(months)
        ]
        return self._render("contribution_grid.svg", {
            "grid": "".join(grid),
            "months": "".join(labels),
        })
