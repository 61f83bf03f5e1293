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


"""File I/O utilities for loading YAML connection jobs and exporting JSON plans."""

import json
import yaml
from pathlib import Path
from datetime import datetime
from .job_conduit import JobConduit


def load_connection_job(yaml_path):
    """
    Load a conduit connection job from a YAML file.

    Parameters
    ----------
    yaml_path : str
        Path to the YAML configuration file.

    Returns
    -------
    tuple
        A tuple containing the following elements:
        - conduits : list
            The two JobConduit objects to connect.
        - parameters : dict
            Dictionary of planner parameters.

    Raises
    ------
    FileNotFoundError
        If the YAML file does not exist.
    ValueError
        If the YAML structure is invalid.

    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(yaml_path, 'r') as f:
        config = yaml.safe_load(f)

    if not isinstance(config, dict):
        raise ValueError("Job file must contain a mapping")

    required_keys = ['conduits', 'parameters']
    for key in required_keys:
        if key not in config:
            raise ValueError(f"Missing required key in YAML: '{key}'")

    parameters = config['parameters'] or {}
    if 'tolerance' not in parameters:
        raise ValueError("Missing required parameter: 'tolerance'")

    if not config['conduits'] or len(config['conduits']) != 2:
        raise ValueError("Exactly two conduits must be defined in the job")

    conduits = []
    for i, conduit_dict in enumerate(config['conduits']):
        for key in ('id', 'start', 'end'):
            if key not in conduit_dict:
                raise ValueError(f"Conduit {i} missing '{key}'")

        conduits.append(JobConduit(conduit_dict))

    if conduits[0].element_id == conduits[1].element_id:
        raise ValueError(f"Duplicate conduit id: '{conduits[0].element_id}'")

    return conduits, parameters


def export_to_json(outcome, apply_result, model, output_path, metadata=None):
    """
    Export a connection outcome and the resulting model to a JSON file.

    Parameters
    ----------
    outcome : ConnectionOutcome
        Classification, strategy and plan returned by the planner.
    apply_result : ApplyResult
        Result of applying the plan to the model.
    model : ConduitModel
        Model after the plan was applied.
    output_path : str
        Path where the JSON file will be written.
    metadata : dict, optional
        Optional metadata to include in the output file.

    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        'metadata': {
            'generated_at': datetime.now().isoformat(),
            'strategy': outcome.strategy_name,
            'num_fittings': len(apply_result.fittings),
        },
        'connection': outcome.to_dict(),
        'applied': apply_result.to_dict(),
        'conduits': [conduit.to_dict() for conduit in model.conduits],
    }

    if metadata:
        data['metadata'].update(metadata)

    with open(output_path, 'w') as f:
        json.dump(data, f, indent=2)


def auto_generate_output_path(input_path):
    """
    Generate an output path with a timestamp relative to the project root.

    The output directory will be:
    .../generated/
    (i.e., one level up from the package source directory)
    """
    input_path = Path(input_path)
    job_name = input_path.stem
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    project_root = Path(__file__).parent.parent

    output_dir = project_root / "generated"
    output_dir.mkdir(parents=True, exist_ok=True)

    output_filename = f"{job_name}_{timestamp}.json"
    return output_dir / output_filename
