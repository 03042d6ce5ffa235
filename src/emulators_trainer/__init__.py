"""Public exports for emulator dataset generation, loading and validation."""

from .aggregation import SampleOutcome, evaluate_residuals, evaluate_sorted_residuals
from .config import DEFAULT_PERCENTILES, ValidationConfig, load_validation_config
from .dataset import (
    COMPUTE_MODES,
    compute_dataset,
    prepare_dataset_directory,
    validate_compute_inputs,
    write_sample_descriptor,
)
from .errors import (
    DimensionInferenceFailed,
    DivisionByZero,
    EmulatorsTrainerError,
    InvalidArgument,
    MissingParameter,
    SampleProcessingError,
)
from .frames import add_observable_df, extract_input_output_df, load_df_directory, read_observable_row
from .locator import locate_sample_directories
from .percentiles import sort_residuals
from .preprocessing import get_minmax_in, get_minmax_out, getdata, maximin_df, splitdf, traintest_split
from .residuals import compute_single_residuals
from .sampling import create_training_dataset, create_training_dict

__all__ = [
    "COMPUTE_MODES",
    "DEFAULT_PERCENTILES",
    "DimensionInferenceFailed",
    "DivisionByZero",
    "EmulatorsTrainerError",
    "InvalidArgument",
    "MissingParameter",
    "SampleOutcome",
    "SampleProcessingError",
    "ValidationConfig",
    "add_observable_df",
    "compute_dataset",
    "compute_single_residuals",
    "create_training_dataset",
    "create_training_dict",
    "evaluate_residuals",
    "evaluate_sorted_residuals",
    "extract_input_output_df",
    "get_minmax_in",
    "get_minmax_out",
    "getdata",
    "load_df_directory",
    "load_validation_config",
    "locate_sample_directories",
    "maximin_df",
    "prepare_dataset_directory",
    "read_observable_row",
    "sort_residuals",
    "splitdf",
    "traintest_split",
    "validate_compute_inputs",
    "write_sample_descriptor",
]
