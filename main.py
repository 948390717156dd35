#!/usr/bin/env python3
"""
Smash Speed - Main Entry Point

Command-line interface for estimating shuttlecock speed in a video clip
with YOLO detection and Kalman filter tracking.
"""

import argparse
import logging
import sys
import os
import yaml

from smash_speed_app import SmashSpeedApp
from utils.errors import SmashSpeedError
from utils.speed import scale_from_reference


def load_config(config_path: str) -> dict:
    """Load configuration from YAML file.
    
    Args:
        config_path: Path to YAML configuration file
        
    Returns:
        Configuration dictionary
        
    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)
    
    return config or {}


def parse_arguments(argv=None):
    """Parse command-line arguments.
    
    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description='Smash Speed - Estimate shuttlecock speed in video footage using YOLO and Kalman Filter tracking',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Process a video with a known scale of 5 mm per pixel
  python main.py --video smash.mp4 --scale 0.005
  
  # Calibrate from a 6.1 m court width marked between two pixels
  python main.py --video smash.mp4 --reference-distance 6.1 --reference-points 102 540 1815 560
  
  # Use a custom config and model
  python main.py --video smash.mp4 --scale 0.005 --config my_config.yaml --model weights/best.pt
        """
    )
    
    parser.add_argument(
        '--video', '-v',
        type=str,
        required=True,
        help='Path to input video file'
    )
    
    # Calibration options
    calibration_group = parser.add_argument_group('calibration options')
    scale_group = calibration_group.add_mutually_exclusive_group(required=True)
    scale_group.add_argument(
        '--scale', '-s',
        type=float,
        help='Calibration scale in meters per pixel'
    )
    scale_group.add_argument(
        '--reference-distance',
        type=float,
        help='Real-world length in meters of a reference marked with --reference-points'
    )
    calibration_group.add_argument(
        '--reference-points',
        type=float,
        nargs=4,
        metavar=('X1', 'Y1', 'X2', 'Y2'),
        help='Pixel coordinates of the two ends of the reference distance'
    )
    
    # Configuration options
    parser.add_argument(
        '--config', '-c',
        type=str,
        default='config.yaml',
        help='Path to configuration YAML file (default: config.yaml)'
    )
    
    # Output options
    parser.add_argument(
        '--output-dir', '-o',
        type=str,
        help='Output directory for reports (overrides config)'
    )
    parser.add_argument(
        '--no-output-report',
        action='store_true',
        help='Disable report generation'
    )
    
    # Detection options
    detection_group = parser.add_argument_group('detection options')
    detection_group.add_argument(
        '--model',
        type=str,
        help='Path to YOLO model file (overrides config)'
    )
    detection_group.add_argument(
        '--confidence',
        type=float,
        help='Detection confidence threshold 0.0-1.0 (overrides config)'
    )
    
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Log per-frame tracking decisions'
    )
    
    args = parser.parse_args(argv)
    if args.reference_distance is not None and args.reference_points is None:
        parser.error('--reference-distance requires --reference-points')
    
    return args


def apply_cli_overrides(config: dict, args: argparse.Namespace) -> dict:
    """Apply command-line argument overrides to configuration.
    
    Args:
        config: Base configuration dictionary
        args: Parsed command-line arguments
        
    Returns:
        Updated configuration dictionary
    """
    if args.output_dir:
        config.setdefault('output', {})['output_directory'] = args.output_dir
    
    if args.no_output_report:
        config.setdefault('output', {})['output_report'] = False
    
    if args.model:
        config.setdefault('detection', {})['model_path'] = args.model
    
    if args.confidence is not None:
        config.setdefault('detection', {})['confidence_threshold'] = args.confidence
    
    return config


def resolve_scale(args: argparse.Namespace) -> float:
    """Return the calibration scale given directly or via a reference distance."""
    if args.scale is not None:
        return args.scale
    x1, y1, x2, y2 = args.reference_points
    return scale_from_reference(args.reference_distance, (x1, y1), (x2, y2))


def print_progress(progress) -> None:
    if progress.completed % 30 == 0:
        print(f"Progress: {progress.completed}/{progress.total} ({progress.fraction * 100:.1f}%)")


def main(argv=None):
    """Main entry point for the speed estimation CLI."""
    args = parse_arguments(argv)
    
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'
    )
    
    # Load configuration
    try:
        config = load_config(args.config)
        print(f"Loaded configuration from: {args.config}")
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print(f"Please create a configuration file or use --config to specify a different path")
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"Error parsing configuration file: {e}")
        sys.exit(1)
    
    config = apply_cli_overrides(config, args)
    
    # Initialize application
    try:
        meters_per_pixel = resolve_scale(args)
        app = SmashSpeedApp(config)
        print("Smash Speed initialized successfully")
    except SmashSpeedError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"Error initializing application: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
    
    # Process video
    try:
        if not os.path.exists(args.video):
            print(f"Error: Video file not found: {args.video}")
            sys.exit(1)
        
        result = app.process_video(args.video, meters_per_pixel, progress_callback=print_progress)
        print(f"\n✓ Peak speed: {result.peak_speed_kph:.1f} km/h")
        sys.exit(0)
    
    except KeyboardInterrupt:
        print("\n\nProcessing interrupted by user")
        sys.exit(130)
    
    except SmashSpeedError as e:
        print(f"\nError during processing: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
