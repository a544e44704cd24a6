"""Statistics and exporter.
"""
import csv
import json
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

FIELDS = ['accesses', 'hits', 'misses', 'evictions', 'hit_rate', 'miss_rate']


@dataclass(frozen=True)
class StatsSnapshot:
    """Read-only copy of the counters at one point of a run."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def accesses(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        return (self.hits / self.accesses) if self.accesses else 0.0

    @property
    def miss_rate(self) -> float:
        return (self.misses / self.accesses) if self.accesses else 0.0

    def as_dict(self) -> Dict[str, float]:
        d = asdict(self)
        d['accesses'] = self.accesses
        d['hit_rate'] = self.hit_rate
        d['miss_rate'] = self.miss_rate
        return {k: d[k] for k in FIELDS}

    def summary(self) -> str:
        return f"hits:{self.hits} misses:{self.misses} evictions:{self.evictions}"


class Statistics:
    def __init__(self):
        self.reset()

    def reset(self):
        # counters start from zero
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def record_access(self, hit: bool, evicted: bool = False):
        # call once per access; an eviction always comes with a miss
        if hit:
            self.hits += 1
        else:
            self.misses += 1
            if evicted:
                self.evictions += 1

    @property
    def accesses(self):
        return self.hits + self.misses

    @property
    def hit_rate(self):
        return (self.hits / self.accesses) if self.accesses else 0.0

    @property
    def miss_rate(self):
        return (self.misses / self.accesses) if self.accesses else 0.0

    def snapshot(self) -> StatsSnapshot:
        return StatsSnapshot(hits=self.hits, misses=self.misses, evictions=self.evictions)


def export_chart_json(hit_rate_history: List[float], stats: StatsSnapshot, fpath: str) -> str:
    """Export hit-rate history and stats to a JSON file. Returns saved path.
    """
    data = {
        'hit_rate_history': list(hit_rate_history),
        'stats': stats.as_dict(),
    }
    with open(fpath, 'w', encoding='utf-8') as fh:
        json.dump(data, fh, indent=2)
    return fpath


def export_chart_pdf(hit_rate_history: List[float], fpath: str, title: Optional[str] = None) -> str:
    """Render the hit-rate history to a PDF using matplotlib and save it.
    Returns the saved file path.
    """
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    data = list(hit_rate_history) or [0]
    fig, ax = plt.subplots(figsize=(6, 2))
    ax.plot(range(len(data)), data, color='#FFA500', linewidth=2)
    ax.fill_between(range(len(data)), data, color='#FFA500', alpha=0.1)
    ax.set_ylim(0, 1)
    ax.set_xlabel('Access')
    ax.set_ylabel('Hit rate')
    if title:
        ax.set_title(title)
    ax.grid(False)
    fig.tight_layout()
    fig.savefig(fpath, format='pdf', dpi=150)
    plt.close(fig)
    return fpath


class Exporter:
    @staticmethod
    def export_stats_csv(path: str, stats: StatsSnapshot):
        row = stats.as_dict()
        with open(path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(FIELDS)
            writer.writerow([row[k] for k in FIELDS])
        return path

    @staticmethod
    def export_stats_json(path: str, stats: StatsSnapshot, hit_rate_history: Optional[List[float]] = None):
        if hit_rate_history is not None:
            return export_chart_json(hit_rate_history, stats, path)
        with open(path, 'w', encoding='utf-8') as fh:
            json.dump({'stats': stats.as_dict()}, fh, indent=2)
        return path
