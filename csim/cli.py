"""Command-line front end.

    csim -s 4 -E 1 -b 4 -t traces/yi.trace
    hits:4 misses:5 evictions:3
"""
import logging

import click

from csim.config import SimulatorConfig, load_config
from csim.core.cache import Cache
from csim.core.simulator import CacheSimulator
from csim.data.stats_export import Exporter, export_chart_pdf
from csim.errors import ConfigurationError, CsimError
from csim.trace.valgrind import iter_events

logger = logging.getLogger(__name__)

# sets and lines are allocated up front
MAX_CACHE_LINES = 1 << 24

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']


def _echo_access(info):
    words = [str(info['event']), 'hit' if info['hit'] else 'miss']
    if info['evicted']:
        words.append('eviction')
    click.echo(' '.join(words))


def run(config: SimulatorConfig, csv_path=None, json_path=None, chart_path=None):
    """Replay `config.trace_file` and return the final statistics."""
    geometry = config.geometry()
    if not config.trace_file:
        raise click.UsageError("a trace file is required (-t/-f or 'trace_file' in --config)")

    if geometry.num_sets * geometry.lines_per_set > MAX_CACHE_LINES:
        raise ConfigurationError(
            f"{geometry.num_sets} sets x {geometry.lines_per_set} lines is too many to simulate "
            f"(limit {MAX_CACHE_LINES} lines)"
        )

    cache = Cache(geometry.set_bits, geometry.lines_per_set, geometry.block_bits)
    sim = CacheSimulator(cache, record_history=bool(chart_path or json_path))
    callback = _echo_access if config.verbose else None

    with open(config.trace_file, 'rb') as fh:
        sim.load_sequence(iter_events(fh))
        stats = sim.run_all(callback)

    if csv_path:
        Exporter.export_stats_csv(csv_path, stats)
        logger.info("statistics written to %s", csv_path)
    if json_path:
        Exporter.export_stats_json(json_path, stats, sim.hit_rate_history)
        logger.info("statistics written to %s", json_path)
    if chart_path:
        title = f"s={geometry.set_bits} E={geometry.lines_per_set} b={geometry.block_bits}"
        export_chart_pdf(sim.hit_rate_history, chart_path, title=title)
        logger.info("hit-rate chart written to %s", chart_path)
    return stats


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.option('-s', 'set_bits', type=click.IntRange(min=0), help='Number of set index bits (S = 2^s is the number of sets)')
@click.option('-E', 'lines_per_set', type=click.IntRange(min=1), help='Associativity (number of lines per set)')
@click.option('-b', 'block_bits', type=click.IntRange(min=0), help='Number of block bits (B = 2^b is the block size)')
@click.option('-t', '-f', '--file', 'trace_file', type=click.Path(dir_okay=False), help='Name of the valgrind trace to replay')
@click.option('-v', '--verbose', is_flag=True, help='Display trace info for every access')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), help='JSON file with default options')
@click.option('--csv', 'csv_path', type=click.Path(dir_okay=False), help='Export final statistics as CSV')
@click.option('--json', 'json_path', type=click.Path(dir_okay=False), help='Export statistics and hit-rate history as JSON')
@click.option('--chart', 'chart_path', type=click.Path(dir_okay=False), help='Save a hit-rate chart as PDF')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False), default='WARNING', show_default=True)
def main(set_bits, lines_per_set, block_bits, trace_file, verbose, config_path, csv_path, json_path, chart_path, log_level):
    """Simulate an LRU set-associative cache against a valgrind memory trace."""
    logging.basicConfig(level=getattr(logging, log_level.upper()), format='%(levelname)s: %(message)s')

    try:
        config = load_config(config_path) if config_path else SimulatorConfig()
        config = config.merged(set_bits=set_bits, lines_per_set=lines_per_set, block_bits=block_bits,
                               trace_file=trace_file, verbose=verbose or None)
        stats = run(config, csv_path=csv_path, json_path=json_path, chart_path=chart_path)
    except CsimError as exc:
        raise click.ClickException(str(exc)) from exc
    except OSError as exc:
        raise click.ClickException(f"{exc.filename}: {exc.strerror}") from exc

    click.echo(stats.summary())


if __name__ == '__main__':
    main()
