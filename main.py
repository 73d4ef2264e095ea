"""
Fleet Safety Report - Main Entry Point

Builds the daily driving-behaviour report from dashboard exports:
1. Directory mode: python main.py -i downloads/  (newest file per report kind)
2. Explicit files: python main.py --overspeed Report1.xls --idling Report2.xls ...

Results:
- ranking_<kind>.csv per report kind, Converted_<source>.csv copies
- HTML report: report.html
- Fleet_Report_<date>.zip with everything above
"""

import sys
import time
import logging
import argparse
from pathlib import Path
from datetime import date, datetime

from telematics.config import load_config, setup_logging, build_settings
from telematics.models import ReportKind
from telematics.output.bundle import create_bundle, write_ranking_csvs
from telematics.output.html_generator import generate_html_report
from telematics.pipeline import build_summary, critical_events, find_source_files, process_reports

FILE_FLAGS = {
    ReportKind.OVER_SPEED: 'overspeed',
    ReportKind.IDLING: 'idling',
    ReportKind.SUDDEN_BRAKE: 'sudden_brake',
    ReportKind.HARSH_START: 'harsh_start',
    ReportKind.FORBIDDEN_PARKING: 'forbidden_parking',
}


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Fleet Safety Report - summary of dashboard telematics exports',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                                   # input directory from config.yaml
  python main.py -i downloads/ -o output/          # explicit directories
  python main.py --overspeed Report1_OverSpeed.xls --idling Report2_Idling.xls
  python main.py --top-n 5 --no-zip
        """
    )

    parser.add_argument(
        '-c', '--config',
        type=str,
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )

    parser.add_argument(
        '-i', '--input-dir',
        type=str,
        help='Directory with downloaded exports. Default: paths.input.dir'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        help='Output directory. Default: paths.output.final'
    )

    for kind, flag in FILE_FLAGS.items():
        parser.add_argument(
            f"--{flag.replace('_', '-')}",
            dest=flag,
            type=str,
            help=f'Export file for the {kind.value} report'
        )

    parser.add_argument(
        '--top-n',
        type=int,
        help='Number of vehicles per ranking (default: report.top_n)'
    )

    parser.add_argument(
        '--date',
        type=str,
        help='Report date YYYY-MM-DD (default: today)'
    )

    parser.add_argument(
        '--no-html',
        action='store_true',
        help='Do not generate the HTML report'
    )

    parser.add_argument(
        '--no-zip',
        action='store_true',
        help='Do not create the zip bundle'
    )

    return parser.parse_args(argv)


def parse_report_date(value: str) -> date:
    """Parse --date; ValueError on a bad format."""
    if not value:
        return date.today()
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise ValueError(f"Invalid --date '{value}', expected YYYY-MM-DD") from None


def resolve_sources(args, config: dict, settings, logger: logging.Logger) -> dict:
    """Explicit file flags first, then discovery in the input directory."""
    input_dir = args.input_dir or config.get('paths', {}).get('input', {}).get('dir')
    sources = find_source_files(input_dir, settings) if input_dir else {kind: None for kind in ReportKind}

    for kind, flag in FILE_FLAGS.items():
        explicit = getattr(args, flag, None)
        if explicit:
            sources[kind] = Path(explicit)

    for kind, path in sources.items():
        logger.info(f"{kind.value}: {path if path else 'no source file'}")

    return sources


def print_summary(results: dict, summary: dict, elapsed: float):
    """Print the run summary."""
    print("\n" + "=" * 60)
    print("SUMMARY")
    print("=" * 60)

    print("\nRecords per report:")
    for kind, result in results.items():
        state = '' if result.header_found else '  (no data)'
        print(f"  {kind.value:<20} {result.total_records:>6}{state}")

    print("\nExecutive summary:")
    print(f"  Over speed events:    {summary['over_speed_events']}")
    print(f"  Max idling:           {summary['max_idling_vehicle']} ({summary['max_idling_minutes']} min)")
    print(f"  Critical events:      {summary['critical_events']}")
    print(f"  Forbidden parking:    {summary['forbidden_events']}")

    print(f"\nElapsed: {elapsed:.2f} s")
    print("=" * 60)


def run(args, config: dict, logger: logging.Logger) -> dict:
    """Run the pipeline and write every output. Returns output paths."""
    settings = build_settings(config, top_n=args.top_n)
    report_date = parse_report_date(args.date)

    output_dir = Path(args.output or config.get('paths', {}).get('output', {}).get('final', 'output'))
    output_dir.mkdir(parents=True, exist_ok=True)

    sources = resolve_sources(args, config, settings, logger)

    print("\n[1/3] Processing exports...")
    results = process_reports(sources, settings, converted_dir=output_dir)
    summary = build_summary(results)
    for kind in summary['unavailable']:
        logger.warning(f"{kind.value}: no data for this run")

    print("[2/3] Writing rankings...")
    outputs = {'rankings': write_ranking_csvs(results, output_dir)}

    if not args.no_html:
        print("[3/3] Generating HTML report...")
        outputs['html'] = generate_html_report(
            results,
            summary,
            critical_events(results, settings.display_limit),
            str(output_dir / 'report.html'),
            title=config.get('report', {}).get('title', 'รายงานสรุปพฤติกรรมการขับขี่'),
            report_date=report_date,
            titles={kind: settings.for_kind(kind).title for kind in ReportKind},
            sort_keys={kind: settings.for_kind(kind).sort_key for kind in ReportKind},
            chart_top_n=settings.chart_top_n,
        )
        logger.info(f"HTML report: {outputs['html']}")

    if not args.no_zip:
        files = list(outputs['rankings'])
        files += [r.converted_csv for r in results.values() if r.converted_csv]
        if outputs.get('html'):
            files.append(outputs['html'])
        outputs['zip'] = create_bundle(files, output_dir / f"Fleet_Report_{report_date.isoformat()}.zip")

    outputs['results'] = results
    outputs['summary'] = summary
    return outputs


def main(argv=None):
    """Entry point."""
    args = parse_args(argv)

    print("=" * 60)
    print("FLEET SAFETY REPORT")
    print("=" * 60)

    try:
        config = load_config(args.config)
        logger = setup_logging(config)
        logger.info("Configuration loaded")

        start_time = time.time()
        outputs = run(args, config, logger)
        elapsed = time.time() - start_time

        print_summary(outputs['results'], outputs['summary'], elapsed)
        logger.info(f"Report finished in {elapsed:.2f} s")

        if outputs.get('zip'):
            print(f"\nBundle: {outputs['zip']}")
        return 0

    except FileNotFoundError as e:
        print(f"\nERROR: file not found - {e}")
        logging.error(f"File not found: {e}")
        return 1

    except ValueError as e:
        print(f"\nCONFIGURATION ERROR: {e}")
        logging.error(f"Config error: {e}")
        return 1

    except Exception as e:
        print(f"\nFATAL ERROR: {e}")
        logging.exception("Report failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
