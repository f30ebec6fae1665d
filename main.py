# main.py
"""
Main entry point for the hard-disk gas simulation.

This script orchestrates the entire simulation lifecycle:
1. Loads configuration from `config.json` (or the path given as argument).
2. Initializes the logging system.
3. Sets up the box and the particles.
4. Runs the step loop, exporting every frame.
5. Handles clean shutdown.
"""
import logging
import sys
import cProfile
import pstats
import io
from utils import setup_logging, load_config, prepare_output_dir
from constants import DEFAULT_STEPS, HISTOGRAM_BINS


def main(config_path: str = 'config.json') -> int:
    """
    The main function to run the simulation.

    Returns:
        int: Process exit code. 0 on success, 1 on configuration or
        resource errors, 2 on invalid setup parameters.
    """
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(config_path)
    except Exception as e:
        print(f"FATAL: Could not load {config_path}. Error: {e}")
        return 1

    setup_logging(config)

    logging.info("--- Hard-Disk Gas Simulation Starting ---")

    sim_params = config.get('simulation_parameters', {})
    run_params = config.get('run_control', {})
    vis_params = config.get('visualization', {})

    from boundary import Boundary
    from particle import ParticleSystem
    from simulation import Simulation, validate_steps
    from exporter import FrameExporter

    # --- Component Initialization ---
    try:
        boundary = Boundary.centered(sim_params.get('box_length', 10.0))
        particles = ParticleSystem(sim_params, boundary)
        sim = Simulation(particles, boundary, {**sim_params, **run_params})
        steps = validate_steps(run_params.get('steps', DEFAULT_STEPS))
    except ValueError as e:
        logging.error(f"Invalid setup parameters, please correct the configuration: {e}")
        return 2

    output_dir = run_params.get('output_dir', 'results')

    try:
        prepare_output_dir(output_dir)
        exporter = FrameExporter(output_dir, vis_params.get('histogram_bins', HISTOGRAM_BINS))
        with exporter:
            visualizer = None
            if vis_params.get('enabled', False):
                from visualization import Visualizer
                visualizer = Visualizer(
                    boundary, float(particles.radii[0]), exporter,
                    fps=vis_params.get('fps', 30)
                )

            profiler = cProfile.Profile() if run_params.get('profile', False) else None
            if profiler is not None:
                profiler.enable()
            try:
                executed = sim.run(
                    steps, exporter,
                    on_frame=visualizer.draw if visualizer is not None else None
                )
            finally:
                if profiler is not None:
                    profiler.disable()
                if visualizer is not None:
                    visualizer.close()
    except OSError as e:
        logging.critical(f"Aborting run, output could not be written: {e}")
        return 1

    logging.info(
        f"Simulation loop finished after {executed} steps. "
        f"Final pressure {boundary.mean_pressure():.6g}, "
        f"kinetic energy {particles.kinetic_energy():.6g}."
    )

    if profiler is not None:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20) # Print top 20 slowest functions
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Hard-Disk Gas Simulation Shutting Down ---")
    return 0


if __name__ == "__main__":
    sys.exit(main(*sys.argv[1:2]))
