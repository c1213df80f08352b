"""
Tests for the YAML experiment loader.

Tests cover:
- Shipped experiment files load and validate
- Lattice from size/density vs. explicit dimensions
- Schema violations, malformed YAML and bad sections raise ConfigLoadError
"""

import pytest
from pathlib import Path

from fluidnn.data_types import Topology, BoundaryModel, SelfModel, ActivityModel
from fluidnn.loader import (
    ConfigLoadError,
    load_experiment,
    load_experiment_registry,
    load_yaml,
)


ROOT = Path(__file__).parent.parent.parent
EXPERIMENTS_DIR = ROOT / "data" / "experiments"
SCHEMA_DIR = ROOT / "schemas"


MINIMAL_EXPERIMENT = """
experiment_id: tiny
name: Tiny
lattice:
  num_rows: 4
  num_cols: 4
  num_neurons: 3
"""


def write(tmp_path: Path, text: str, name: str = "experiment.yaml") -> Path:
    path = tmp_path / name
    path.write_text(text)
    return path


def test_shipped_experiments_load():
    registry = load_experiment_registry(EXPERIMENTS_DIR, SCHEMA_DIR)

    paper = registry['sole-miramontes-1995']
    assert paper.lattice.num_rows == 9
    assert paper.lattice.num_neurons == 25
    assert paper.parameters.gain == pytest.approx(0.3)
    assert paper.parameters.spontaneous_activation_probability == pytest.approx(1e-5)
    assert paper.schedule.num_iterations_data_collection == 10000
    assert paper.models.topology == Topology.MOORE
    assert paper.models.self_model == SelfModel.INCLUDE_SELF
    assert paper.num_runs == 50

    smoke = registry['smoke-torus']
    assert smoke.models.topology == Topology.VON_NEUMANN
    assert smoke.models.boundary == BoundaryModel.TORUS
    assert smoke.lattice.num_neurons == 12


def test_defaults_fill_missing_sections(tmp_path):
    experiment = load_experiment(write(tmp_path, MINIMAL_EXPERIMENT), SCHEMA_DIR)

    assert experiment.parameters.gain == pytest.approx(0.2)
    assert experiment.parameters.coupling.active_inactive == 1.0
    assert experiment.schedule.num_iterations == 11000
    assert experiment.models.activity == ActivityModel.ALL_NEURONS
    assert experiment.seed is None


def test_coupling_section(tmp_path):
    text = MINIMAL_EXPERIMENT + """
parameters:
  gain: 0.5
  coupling:
    active_inactive: 0.5
    inactive_inactive: 0.0
"""
    experiment = load_experiment(write(tmp_path, text), SCHEMA_DIR)

    coupling = experiment.parameters.coupling
    assert coupling.active_active == 1.0
    assert coupling.active_inactive == 0.5
    assert coupling.inactive_inactive == 0.0


def test_schema_rejects_unknown_topology(tmp_path):
    text = MINIMAL_EXPERIMENT + """
models:
  topology: hexagonal
"""
    with pytest.raises(ConfigLoadError, match="Validation error"):
        load_experiment(write(tmp_path, text), SCHEMA_DIR)


def test_unknown_topology_without_schema(tmp_path):
    text = MINIMAL_EXPERIMENT + """
models:
  topology: hexagonal
"""
    with pytest.raises(ConfigLoadError, match="Unknown topology"):
        load_experiment(write(tmp_path, text))


def test_schedule_discarding_too_much(tmp_path):
    text = MINIMAL_EXPERIMENT + """
schedule:
  num_iterations: 10
  num_iterations_discarded: 20
"""
    with pytest.raises(ConfigLoadError, match="schedule"):
        load_experiment(write(tmp_path, text))


def test_unknown_parameter_without_schema(tmp_path):
    text = MINIMAL_EXPERIMENT + """
parameters:
  temperature: 3.0
"""
    with pytest.raises(ConfigLoadError, match="parameters"):
        load_experiment(write(tmp_path, text))


def test_missing_required_field(tmp_path):
    text = """
experiment_id: no-name
lattice:
  size: 5
  density: 0.2
"""
    with pytest.raises(ConfigLoadError):
        load_experiment(write(tmp_path, text))


def test_malformed_yaml(tmp_path):
    with pytest.raises(ConfigLoadError, match="YAML parse error"):
        load_yaml(write(tmp_path, "lattice: [unclosed"))


def test_top_level_must_be_mapping(tmp_path):
    with pytest.raises(ConfigLoadError):
        load_yaml(write(tmp_path, "- just\n- a list\n"))


def test_missing_file(tmp_path):
    with pytest.raises(ConfigLoadError, match="File not found"):
        load_yaml(tmp_path / "absent.yaml")


def test_empty_registry_directory(tmp_path):
    with pytest.raises(ConfigLoadError):
        load_experiment_registry(tmp_path)


def test_schedule_without_collected_iterations(tmp_path):
    text = MINIMAL_EXPERIMENT + """
schedule:
  num_iterations: 10
  num_iterations_discarded: 10
"""
    with pytest.raises(ConfigLoadError, match="leaves none for data collection"):
        load_experiment(write(tmp_path, text))
