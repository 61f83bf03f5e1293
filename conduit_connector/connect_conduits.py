#!/usr/bin/env python3

# Copyright 2025 Berkan Tali
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Main user entry point - orchestrates loading, planning, applying and exporting."""

import sys
import argparse
import logging
from pathlib import Path

if __name__ == '__main__':
    sys.path.insert(0, str(Path(__file__).parent.parent))

from conduit_connector import path_utils
from conduit_connector.conduit_model import ConduitModel
from conduit_connector.connection_planner import ConnectionPlanner


def parse_arguments(argv=None):
    """Parse command line arguments with smart defaults."""
    parser = argparse.ArgumentParser(
        description="Plan and apply the connection between two conduits from a YAML job",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Use default job
  %(prog)s

  # Specify input job
  %(prog)s --input my_job.yaml

  # Specify both input and output
  %(prog)s --input my_job.yaml --output my_plan.json

  # Verbose output
  %(prog)s --input my_job.yaml --verbose
        """
    )

    default_config = Path(__file__).parent.parent / "config" / "connection_job.yaml"

    parser.add_argument(
        '--input', '-i',
        type=str,
        default=str(default_config) if default_config.exists() else None,
        help='Input YAML job file (default: config/connection_job.yaml)'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        default=None,
        help='Output JSON file (default: auto-generated in generated/)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Print detailed information during planning'
    )

    return parser.parse_args(argv)


def _fmt(point):
    return f"[{point[0]:.3f}, {point[1]:.3f}, {point[2]:.3f}]"


def main(argv=None):
    """Orchestrate loading, planning, applying and exporting of a conduit connection."""
    args = parse_arguments(argv)

    if args.input is None:
        print("ERROR: No input file specified and default job not found")
        print("Use --input to specify a YAML job file")
        return 1

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        # Load Job
        if args.verbose:
            print(f"Loading job from: {args.input}")

        conduits, parameters = path_utils.load_connection_job(args.input)

        if args.verbose:
            print(f"  Job: {Path(args.input).stem}")
            print(f"  Tolerance: {parameters['tolerance']}")
            for conduit in conduits:
                line = conduit.line_segment
                print(f"  Conduit {conduit.element_id}:")
                print(f"    Start: {_fmt(line.start)}")
                print(f"    End:   {_fmt(line.end)}")
                print(f"    Length: {line.length():.3f}")
            print()

        # Build Model and Planner
        model = ConduitModel(tolerance=float(parameters['tolerance']))
        for conduit in conduits:
            model.add_conduit(conduit.line_segment, conduit.diameter, conduit.element_id)

        planner = ConnectionPlanner(parameters)

        # Plan Connection
        first, second = conduits
        outcome = planner.connect(
            first.line_segment, second.line_segment, first.free_end, second.free_end
        )
        classification = outcome.classification

        if args.verbose:
            print(f"Relationship: {classification.relationship.value}")
            print(f"  Offset: {classification.offset:.6f}")
            print(f"  Angle: {classification.angle_deg:.2f}°")
            print(f"Strategy: {outcome.strategy_name}")
            for i, joint in enumerate(outcome.plan.joints):
                print(f"  Joint {i}: {_fmt(joint.location)} "
                      f"{joint.fitting_kind} {joint.bend_angle_deg:.1f}°")
            print()

        # Apply Plan
        apply_result = model.apply_plan(outcome.plan, first.element_id, second.element_id)

        print(f"Connected {first.element_id} and {second.element_id} with {outcome.strategy_name} "
              f"({len(apply_result.fittings)} fitting(s))")

        # Export to JSON
        if args.output is None:
            output_path = path_utils.auto_generate_output_path(args.input)
            if args.verbose:
                print(f"Auto-generated output path: {output_path}")
        else:
            output_path = Path(args.output)

        metadata = {
            'input_file': str(Path(args.input).resolve()),
            'tolerance': planner.tolerance,
            'angular_tolerance': planner.angular_tolerance,
        }

        path_utils.export_to_json(outcome, apply_result, model, output_path, metadata)

        return 0

    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        return 1
    except ValueError as e:
        print(f"ERROR: Invalid job - {e}")
        return 1
    except Exception as e:
        print(f"ERROR: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
