import argparse
import logging
import pathlib
import sys
from datetime import datetime

from dotenv import load_dotenv

load_dotenv()

from src.aggregation import AggregationConfig, RequestTracker, get_default_aggregation_config, run_aggregation
from src.aggregation.categorical import CategoricalSummary
from src.data_source import InputValidationError, load_cell_table, load_comparisons, load_selections
from src.statistical_analysis.corrections import apply_multiple_testing_correction
from src.statistical_analysis.pipeline import Group, run_statistical_tests
from src.statistical_analysis.plotting import plot_category_counts, plot_field_summaries
from src.statistical_analysis.report import ReportCollector, generate_markdown_report
from src.statistical_analysis.results import format_statistical_result

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def configure_logging(log_level: str):
    """Configure logging with the specified level."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )
    return logging.getLogger(__name__)


def _resolve_report_path(report_arg, prefix: str) -> pathlib.Path:
    if report_arg is True:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return pathlib.Path(f"reports/{prefix}_report_{timestamp}.md")
    return pathlib.Path(report_arg)


def _print_results(field: str, results):
    print(f"\n{field}")
    print(f"{'Test':<20} {'Statistic':>10} {'p-value':>10} {'Sig':>4} {'Adj. p':>10}  {'Effect size':<28} Interpretation")
    print("-" * 120)
    for r in results:
        row = format_statistical_result(r)
        adjusted = f"{r.adjusted_p_value:.4g}" if r.adjusted_p_value is not None else "-"
        print(
            f"{row['test']:<20} {row['statistic']:>10} {row['p_value']:>10} {row['significance']:>4} "
            f"{adjusted:>10}  {row['effect_size']:<28} {row['interpretation']}"
        )


def _print_summary(summary, label: str = None):
    label = label or summary.field
    if isinstance(summary, CategoricalSummary):
        print(f"\n{label}: {summary.total} cells, {summary.category_count} categories")
        for cat in summary.top_categories:
            print(f"  {str(cat.name):<30} {cat.count:>10} {cat.percent:>6.1f}%")
        return

    def fmt(value):
        return "-" if value is None or value != value else f"{value:.4g}"

    approx = " (approximate quantiles)" if summary.approximate else ""
    print(f"\n{label}{approx}")
    print(
        f"  count={summary.count} mean={fmt(summary.mean)} std={fmt(summary.std)} "
        f"min={fmt(summary.min)} q1={fmt(summary.q1)} median={fmt(summary.median)} "
        f"q3={fmt(summary.q3)} max={fmt(summary.max)}"
    )


def cmd_compare(args):
    """Run hypothesis tests on the groups described in a JSON file."""
    logger = configure_logging(args.log_level)

    json_path = pathlib.Path(args.json)
    if not json_path.is_file():
        logger.error(f"Path does not exist: {json_path}")
        return 1

    try:
        comparisons = load_comparisons(json_path)
    except InputValidationError as e:
        logger.error(str(e))
        return 1

    logger.info(f"Found {len(comparisons)} comparison(s) to run")
    report_collector = ReportCollector() if args.report else None

    # Collect all results first so the correction spans every comparison
    outputs = []
    for comparison in comparisons:
        groups = [Group(name=g.name, values=g.values) for g in comparison.groups]
        try:
            results = run_statistical_tests(groups, comparison.data_kind)
            outputs.append((comparison, groups, results, None))
        except ValueError as e:
            logger.error(f"Error comparing {comparison.field}: {e}")
            outputs.append((comparison, groups, [], str(e)))

    if args.correction != "none":
        flat = [r for _, _, results, _ in outputs for r in results]
        corrected = iter(apply_multiple_testing_correction(flat, method=args.correction))
        outputs = [
            (comparison, groups, [next(corrected) for _ in results], error)
            for comparison, groups, results, error in outputs
        ]

    for comparison, groups, results, error in outputs:
        if not error:
            _print_results(comparison.field, results)
        if report_collector:
            report_collector.add_comparison(
                field=comparison.field,
                data_kind=comparison.data_kind,
                results=results,
                group_names=[g.name for g in groups],
                error=error,
            )

    if report_collector:
        generate_markdown_report(report_collector, str(_resolve_report_path(args.report, "comparison")))
    return 0


def cmd_summarize(args):
    """Summarise fields of a cell table over saved cell selections."""
    logger = configure_logging(args.log_level)

    try:
        source = load_cell_table(args.cells, categorical_columns=args.categorical)
        selections = load_selections(args.selections)
        base = get_default_aggregation_config()
        config = AggregationConfig(
            exact_threshold=args.exact_threshold if args.exact_threshold is not None else base.exact_threshold,
            reservoir_size=base.reservoir_size,
            cancel_check_interval=base.cancel_check_interval,
            top_k=base.top_k,
        )
    except (FileNotFoundError, InputValidationError, ValueError) as e:
        logger.error(str(e))
        return 1

    tracker = RequestTracker()
    request = tracker.begin("cli")
    try:
        result = run_aggregation(
            source,
            args.field,
            selections,
            token=request.token,
            config=config,
            rng=args.seed,
            request_id=request.request_id,
            per_group=args.per_group or args.compare,
        )
    except ValueError as e:
        logger.error(str(e))
        return 1

    for summary in result.summaries:
        _print_summary(summary)
        if args.per_group:
            for group_name, group_summary in result.per_group[summary.field].items():
                _print_summary(group_summary, label=f"{summary.field} [{group_name}]")

    report_collector = ReportCollector() if args.report else None
    if report_collector:
        for summary in result.summaries:
            report_collector.add_summary(summary)

    if args.compare:
        for name in args.field:
            samples = source.extract_group_values(name, selections)
            groups = [Group(name=group_name, values=values) for group_name, values in samples.items()]
            results = run_statistical_tests(groups, source.field_kind(name))
            _print_results(name, results)
            if report_collector:
                report_collector.add_comparison(
                    field=name,
                    data_kind=source.field_kind(name),
                    results=results,
                    group_names=list(samples),
                )

    if args.plot:
        plot_path = pathlib.Path(args.plot)
        plot_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            if result.continuous:
                if args.per_group and len(result.continuous) == 1:
                    summaries = result.per_group[result.continuous[0].field]
                else:
                    summaries = result.continuous
                plot_field_summaries(summaries, save_path=str(plot_path))
            else:
                plot_category_counts(result.categorical[0], save_path=str(plot_path))
            if report_collector:
                report_collector.add_figure(str(plot_path))
        except RuntimeError as e:
            logger.error(f"Plotting failed: {e}")

    if report_collector:
        generate_markdown_report(report_collector, str(_resolve_report_path(args.report, "summary")))
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="PopStats - Population statistics and hypothesis testing for cell groups",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Compare command
    compare_parser = subparsers.add_parser(
        "compare", help="Run hypothesis tests on groups given in a JSON file"
    )
    compare_parser.add_argument(
        "--json",
        required=True,
        help='JSON file with {"field", "data_kind", "groups": [{"name", "values"}]} or a list of them',
    )
    compare_parser.add_argument(
        "--correction",
        choices=["bh", "bonferroni", "none"],
        default="bh",
        help="Multiple-testing correction across all tests (default: bh)",
    )
    compare_parser.add_argument(
        "--report",
        nargs="?",
        const=True,
        default=False,
        metavar="PATH",
        help="Generate a Markdown report. Optionally specify output path (default: reports/comparison_report_<timestamp>.md)",
    )
    compare_parser.add_argument(
        "--log-level",
        default="INFO",
        choices=LOG_LEVELS,
        help="Set logging level (default: INFO)",
    )
    compare_parser.set_defaults(func=cmd_compare)

    # Summarize command
    summarize_parser = subparsers.add_parser(
        "summarize", help="Summarise fields of a cell table over cell selections"
    )
    summarize_parser.add_argument("--cells", required=True, help="CSV file, one row per cell")
    summarize_parser.add_argument(
        "--selections",
        required=True,
        help='JSON file with {"groups": {name: [cell indices]}}',
    )
    summarize_parser.add_argument(
        "--field",
        action="append",
        required=True,
        help="Field to summarise (repeatable)",
    )
    summarize_parser.add_argument(
        "--categorical",
        action="append",
        default=None,
        help="Treat a numeric column as categorical (repeatable)",
    )
    summarize_parser.add_argument(
        "--per-group",
        action="store_true",
        help="Also summarise every group separately",
    )
    summarize_parser.add_argument(
        "--compare",
        action="store_true",
        help="Run hypothesis tests between the selected groups",
    )
    summarize_parser.add_argument(
        "--exact-threshold",
        type=int,
        default=None,
        help="Largest selection summarised exactly (default: POPSTATS_EXACT_THRESHOLD or 50000)",
    )
    summarize_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for reservoir sampling on large selections",
    )
    summarize_parser.add_argument(
        "--plot",
        metavar="PATH",
        help="Save a box plot (continuous) or bar chart (categorical) to PATH",
    )
    summarize_parser.add_argument(
        "--report",
        nargs="?",
        const=True,
        default=False,
        metavar="PATH",
        help="Generate a Markdown report. Optionally specify output path (default: reports/summary_report_<timestamp>.md)",
    )
    summarize_parser.add_argument(
        "--log-level",
        default="INFO",
        choices=LOG_LEVELS,
        help="Set logging level (default: INFO)",
    )
    summarize_parser.set_defaults(func=cmd_summarize)

    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    if args.command is None:
        parser.print_help()
        return

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
