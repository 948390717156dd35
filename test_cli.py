"""Tests for command-line parsing and configuration overrides."""

import pytest
import yaml

from main import apply_cli_overrides, load_config, parse_arguments, resolve_scale


def test_scale_argument():
    args = parse_arguments(['--video', 'clip.mp4', '--scale', '0.005'])

    assert resolve_scale(args) == 0.005


def test_reference_distance_calibration():
    args = parse_arguments(['--video', 'clip.mp4', '--reference-distance', '6.1',
                            '--reference-points', '100', '500', '710', '500'])

    assert resolve_scale(args) == pytest.approx(0.01)


def test_reference_distance_requires_points():
    with pytest.raises(SystemExit):
        parse_arguments(['--video', 'clip.mp4', '--reference-distance', '6.1'])


def test_calibration_is_required():
    with pytest.raises(SystemExit):
        parse_arguments(['--video', 'clip.mp4'])


def test_overrides_are_applied():
    args = parse_arguments(['--video', 'clip.mp4', '--scale', '0.01', '--model', 'shuttle.pt',
                            '--confidence', '0.4', '--output-dir', 'results', '--no-output-report'])

    config = apply_cli_overrides({'detection': {'iou_threshold': 0.5}}, args)

    assert config['detection'] == {'iou_threshold': 0.5, 'model_path': 'shuttle.pt', 'confidence_threshold': 0.4}
    assert config['output'] == {'output_directory': 'results', 'output_report': False}


def test_load_config(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text(yaml.safe_dump({'gate': {'max_speed_kph': 400.0}}))

    assert load_config(str(path)) == {'gate': {'max_speed_kph': 400.0}}

    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / 'missing.yaml'))
