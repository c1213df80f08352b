"""
YAML experiment loader with schema validation.

Loads experiment definitions (lattice, activation parameters, schedule,
step models) from YAML files and validates them against JSON schemas.
"""

import yaml
import json
from pathlib import Path
from typing import Dict, Optional
import jsonschema

from .data_types import (
    ExperimentConfig, LatticeConfig, NetworkParameters, CouplingMatrix,
    RunSchedule, StepModels, Topology, SelfModel, BoundaryModel, ActivityModel,
)
from .constants import NUM_RUNS_DEFAULT


class ConfigLoadError(Exception):
    """Raised when experiment loading or validation fails"""
    pass


def load_yaml(file_path: Path) -> dict:
    """Load YAML file and return parsed dict"""
    file_path = Path(file_path)
    if not file_path.exists():
        raise ConfigLoadError(f"File not found: {file_path}")

    try:
        with open(file_path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"YAML parse error in {file_path}: {e}")

    if not isinstance(data, dict):
        raise ConfigLoadError(f"Expected a mapping at top level of {file_path}")
    return data


def validate_against_schema(data: dict, schema_path: Path, data_path: Path):
    """Validate data dict against JSON schema"""
    if not schema_path.exists():
        # Schema validation optional when no schema is shipped
        return

    try:
        with open(schema_path, 'r') as f:
            schema = json.load(f)
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        raise ConfigLoadError(f"Validation error in {data_path}: {e.message}")
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Invalid JSON schema {schema_path}: {e}")


def _parse_enum(enum_cls, value: str, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ', '.join(m.value for m in enum_cls)
        raise ConfigLoadError(f"Unknown {field_name} '{value}' (expected one of: {allowed})")


def parse_lattice(data: dict) -> LatticeConfig:
    """
    Lattice from either explicit dimensions or a square size and density.

    Accepts {num_rows, num_cols, num_neurons} or {size, density}.
    """
    if 'density' in data:
        if 'size' not in data:
            raise ConfigLoadError("Lattice with density also needs size")
        return LatticeConfig.from_density(data['size'], data['density'])

    try:
        return LatticeConfig(**data)
    except TypeError as e:
        raise ConfigLoadError(f"Invalid lattice section: {e}")


def parse_parameters(data: dict) -> NetworkParameters:
    """Activation parameters, with an optional nested coupling matrix"""
    data = dict(data)
    try:
        coupling = CouplingMatrix(**data.pop('coupling', {}))
        return NetworkParameters(coupling=coupling, **data)
    except TypeError as e:
        raise ConfigLoadError(f"Invalid parameters section: {e}")


def parse_schedule(data: dict) -> RunSchedule:
    try:
        return RunSchedule(**data)
    except (TypeError, ValueError) as e:
        raise ConfigLoadError(f"Invalid schedule section: {e}")


def parse_models(data: dict) -> StepModels:
    """Step models from enum value strings (defaults to the paper's models)"""
    defaults = StepModels()
    return StepModels(
        topology=_parse_enum(Topology, data.get('topology', defaults.topology.value), 'topology'),
        self_model=_parse_enum(SelfModel, data.get('self_model', defaults.self_model.value), 'self_model'),
        boundary=_parse_enum(BoundaryModel, data.get('boundary', defaults.boundary.value), 'boundary'),
        activity=_parse_enum(ActivityModel, data.get('activity', defaults.activity.value), 'activity'),
    )


def parse_experiment(data: dict) -> ExperimentConfig:
    """Build an ExperimentConfig from a parsed (and validated) dict"""
    try:
        return ExperimentConfig(
            experiment_id=data['experiment_id'],
            name=data['name'],
            lattice=parse_lattice(data['lattice']),
            parameters=parse_parameters(data.get('parameters', {})),
            schedule=parse_schedule(data.get('schedule', {})),
            models=parse_models(data.get('models', {})),
            num_runs=data.get('num_runs', NUM_RUNS_DEFAULT),
            seed=data.get('seed'),
            description=data.get('description')
        )
    except KeyError as e:
        raise ConfigLoadError(f"Missing required field: {e}")


def load_experiment(file_path: Path, schema_dir: Optional[Path] = None) -> ExperimentConfig:
    """Load experiment definition from YAML"""
    data = load_yaml(file_path)

    # Validate if schema available
    if schema_dir:
        schema_path = Path(schema_dir) / "experiment.schema.json"
        validate_against_schema(data, schema_path, file_path)

    return parse_experiment(data)


def load_experiment_registry(experiments_dir: Path, schema_dir: Optional[Path] = None) -> Dict[str, ExperimentConfig]:
    """Load all experiments from directory"""
    experiments_dir = Path(experiments_dir)
    if not experiments_dir.exists():
        raise ConfigLoadError(f"Experiments directory not found: {experiments_dir}")

    registry = {}
    for yaml_file in sorted(experiments_dir.glob("*.yaml")):
        experiment = load_experiment(yaml_file, schema_dir)
        registry[experiment.experiment_id] = experiment

    if not registry:
        raise ConfigLoadError(f"No experiment files found in {experiments_dir}")

    print(f"[OK] Loaded {len(registry)} experiments from {experiments_dir}")
    return registry
