import logging
from typing import Any, Dict, Mapping
from config import Config

logger = logging.getLogger(__name__)

TIE = 'Tie'

class ComparisonEngine:
    """Winner/tie reports between two score results or two market summaries"""

    def compare(self, a: Mapping[str, Any], b: Mapping[str, Any]) -> Dict[str, Any]:
        """Per-category and overall winners between two ScoreResults.

        ``delta`` is signed: first place minus second place. Equal scores
        are reported as a tie, never as a win for either side.
        """
        name_a, name_b = a['area_name'], b['area_name']

        categories = {}
        for category in Config.CATEGORIES:
            categories[category] = self._compare_values(
                a['category_scores'][category], b['category_scores'][category],
                name_a, name_b, higher_is_better=True,
            )

        overall = self._compare_values(
            a['final_score'], b['final_score'], name_a, name_b, higher_is_better=True,
        )

        return {
            'categories': categories,
            'overall': overall,
        }

    def compare_metrics(self, a: Mapping[str, Any], b: Mapping[str, Any],
                        directions: Mapping[str, str] = None,
                        name_key: str = 'area',
                        count_key: str = 'count') -> Dict[str, Any]:
        """Compare summaries metric by metric using a per-metric direction table.

        ``directions`` maps metric name to ``'higher'`` or ``'lower'`` (which
        value wins). Defaults to ``Config.MARKET_COMPARE_METRICS``.

        A side whose ``count_key`` is 0 has no data behind its zeroed metrics,
        so no winner is declared and the entry is flagged ``no_data``.
        """
        directions = directions if directions is not None else Config.MARKET_COMPARE_METRICS
        name_a, name_b = a[name_key], b[name_key]
        no_data = a.get(count_key) == 0 or b.get(count_key) == 0

        result = {}
        for metric, direction in directions.items():
            if direction not in ('higher', 'lower'):
                raise ValueError(f"Invalid direction '{direction}' for metric '{metric}'")
            entry = self._compare_values(
                a[metric], b[metric], name_a, name_b,
                higher_is_better=(direction == 'higher'), labels=('area1', 'area2'),
            )
            if no_data:
                entry.update({'delta': None, 'winner': None, 'winning_side': None, 'no_data': True})
            entry['better'] = direction
            result[metric] = entry

        return result

    @staticmethod
    def _compare_values(value_a, value_b, name_a, name_b, higher_is_better: bool,
                        labels=('place1', 'place2')) -> Dict[str, Any]:
        label_a, label_b = labels
        if value_a == value_b:
            winner, winning_side = TIE, None
        elif (value_a > value_b) == higher_is_better:
            winner, winning_side = name_a, label_a
        else:
            winner, winning_side = name_b, label_b

        return {
            label_a: value_a,
            label_b: value_b,
            'delta': value_a - value_b,
            'winner': winner,
            'winning_side': winning_side,
        }
