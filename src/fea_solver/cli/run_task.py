#!/usr/bin/env python3
"""
Element Stiffness CLI Runner.

This script provides a command-line interface for computing the local
stiffness matrices of a 10-node tetrahedral mesh from an XML or YAML task
file.

Usage:
    fea-solver task.xml [options]

Examples:
    # Compute local stiffness matrices for every element
    fea-solver task.xml

    # Same, emitting the input, gradient, tensor and stiffness dumps
    fea-solver task.yaml --dump

    # Preview configuration without running
    fea-solver task.yaml --preview

    # Generate template configuration
    fea-solver --template > my_task.yaml
"""

import argparse
import logging
import sys
from pathlib import Path

# Template YAML configuration
TEMPLATE_CONFIG = """# Element Stiffness Task Configuration
# ====================================

#============================================================================
# TASK
#============================================================================
task:
  type: "CARTESIAN3D"
  dof: 3

  # Material model. A5 is isotropic linear elasticity.
  model:
    name: "A5"
    parameters: [100.0, 100.0]   # [lambda, mu]
    # Alternatively, engineering constants:
    # E: 250.0
    # nu: 0.25

  # Global solution controls (parsed and carried, not used for local stiffness)
  solution:
    modified_newton: true
    load_increments_count: 0
    desired_tolerance: 1.0e-8
    linesearch_max: 0
    arclength_max: 0

  element:
    type: "TETRAHEDRA10"
    nodes_count: 10
    gauss_nodes_count: 5          # 4 or 5

#============================================================================
# MESH
#============================================================================
mesh:
  # Option 1: any meshio-readable file with tetra10 cells (.vtu, .msh, .inp, ...)
  file: "body.vtu"

  # Option 2: inline tables (0-based node ids)
  # nodes:
  #   - [0.0, 0.0, 0.0]
  #   - ...
  # elements:
  #   - [0, 1, 2, 3, 4, 5, 6, 7, 8, 9]

#============================================================================
# BOUNDARY CONDITIONS (carried, not applied)
#============================================================================
boundary_conditions:
  prescribed: []
    # - node_id: 0
    #   values: [0.0, 0.0, 0.0]
    #   type: 7                   # bitmask: 1=x, 2=y, 4=z
"""


def setup_logging(verbose: bool = False, dump: bool = False) -> None:
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    if dump:
        logging.getLogger("fea_solver").setLevel(logging.DEBUG)


def print_template() -> None:
    """Print template configuration to stdout."""
    print(TEMPLATE_CONFIG)


def validate_config(config_path: str) -> bool:
    """Validate task file and mesh without computing anything."""
    from fea_solver.core.exceptions import FeaError
    from fea_solver.core.io.readers import load_task
    from fea_solver.solvers.solver import FeaSolver

    try:
        config, mesh = load_task(config_path)
        warnings = config.validate()
        FeaSolver(config.task, mesh)
    except (FeaError, OSError) as e:
        print(f"\n✗ Validation failed: {e}")
        return False

    print("Configuration validation:")
    print("=" * 50)
    print(config)
    print(f"Mesh: {mesh.node_count} nodes, {mesh.element_count} elements")

    if warnings:
        print("\nWarnings:")
        for w in warnings:
            print(f"  ⚠️  {w}")
    print("\n✓ Configuration is valid")
    return True


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Compute local stiffness matrices of 10-node tetrahedral meshes.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s task.xml                       Compute local stiffness matrices
  %(prog)s task.yaml --dump               Also emit diagnostic dumps
  %(prog)s task.yaml --preview            Preview configuration
  %(prog)s --template > task.yaml         Generate template
        """,
    )

    parser.add_argument(
        "config",
        nargs="?",
        help="Path to XML or YAML task file",
    )

    parser.add_argument(
        "--preview",
        "-p",
        action="store_true",
        help="Preview configuration without running",
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate task file",
    )

    parser.add_argument(
        "--dump",
        "-d",
        action="store_true",
        help="Dump input data, shape gradients, constitutive matrix and local stiffness",
    )

    parser.add_argument(
        "--template",
        "-t",
        action="store_true",
        help="Print template configuration to stdout",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    if args.template:
        print_template()
        return 0

    # Require task file for other operations
    if not args.config:
        parser.print_help()
        return 1

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Error: Task file not found: {config_path}")
        return 1

    setup_logging(args.verbose, args.dump)

    if args.validate:
        return 0 if validate_config(str(config_path)) else 1

    from fea_solver.core.exceptions import FeaError
    from fea_solver.core.io.readers import load_task
    from fea_solver.solvers.solver import FeaSolver

    try:
        config, mesh = load_task(config_path)

        if args.preview:
            print(config)
            print(f"Mesh: {mesh.node_count} nodes, {mesh.element_count} elements")
            return 0

        for w in config.validate():
            logging.getLogger(__name__).warning(w)

        with FeaSolver(config.task, mesh) as solver:
            summary = solver.solve()

        print(
            f"Computed {summary.elements} local stiffness matrices "
            f"({summary.degenerate_points} degenerate Gauss points, "
            f"global size {summary.global_size})"
        )
        return 0

    except KeyboardInterrupt:
        print("\nRun interrupted by user")
        return 130

    except (FeaError, OSError) as e:
        logging.getLogger(__name__).error("Run failed: %s", e)
        print(f"\nError: {e}")
        return 1

    except Exception as e:
        logging.exception("Run failed")
        print(f"\nError: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
