"""
Life Valuation Engine

Actuarial present values of life insurances and annuities from mortality
tables: canonical ultimate and select tables, fractional-age survival under
UDD/CFM/HPB, commutation functions and the formulas built on them.

Version: 1.0.0

Author: Actuarial Pipeline Project
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Actuarial Pipeline Project"

from .exceptions import (
    ActuarialError,
    DataIntegrityError,
    ValidationError,
    OutOfRangeError,
    ConfigError,
    ComputationError,
)

from .mortality import (
    MortalityTable,
    UltimateTable,
    SelectTable,
    RawTable,
    RawTableRow,
    RateKind,
    DEFAULT_RADIX,
    qx_rows,
    lx_rows,
)

from .library import (
    constant_force_table,
    de_moivre_table,
    gompertz_table,
    makeham_table,
    weibull_table,
    standard_ultimate_life_table,
)

from .table_config import (
    Assumption,
    MortTableConfig,
    create_table_config,
)

from .validation import (
    CalcParams,
    ParameterValidator,
    validate_params,
)

from .survival import (
    SurvivalEngine,
    tpx,
    tqx,
)

from .commutation import (
    CommutationTable,
    CommutationCache,
    default_cache,
    get_commutation_table,
    Dx, Cx, Mx, Nx, Rx, Sx,
)

from .financials import (
    InterestBasis,
    nominal_to_effective_i,
    effective_to_nominal_i,
    effective_to_nominal_d,
    nominal_to_effective_d,
    effective_i_to_d,
    effective_d_to_i,
    alpha_m,
    beta_m,
    discount_factors,
    an, aan, Ian, Iaan, Dan, Daan, sn, ssn,
)

from .formulas import (
    # Insurance
    Ax, Ax1n, Exn, Axn,
    IAx, IAx1n, IAxn, DAx1n, DAxn,
    # Annuities
    aax, aaxn, ax, axn,
    Iaax, Iaaxn, Daaxn,
    # Geometric
    gAx, gAx1n, gExn, gAxn, gaax, gaaxn,
)

__all__ = [
    # Errors
    "ActuarialError",
    "DataIntegrityError",
    "ValidationError",
    "OutOfRangeError",
    "ConfigError",
    "ComputationError",

    # Mortality tables
    "MortalityTable",
    "UltimateTable",
    "SelectTable",
    "RawTable",
    "RawTableRow",
    "RateKind",
    "DEFAULT_RADIX",
    "qx_rows",
    "lx_rows",

    # Parametric laws
    "constant_force_table",
    "de_moivre_table",
    "gompertz_table",
    "makeham_table",
    "weibull_table",
    "standard_ultimate_life_table",

    # Configuration
    "Assumption",
    "MortTableConfig",
    "create_table_config",

    # Validation
    "CalcParams",
    "ParameterValidator",
    "validate_params",

    # Survival
    "SurvivalEngine",
    "tpx",
    "tqx",

    # Commutation
    "CommutationTable",
    "CommutationCache",
    "default_cache",
    "get_commutation_table",
    "Dx", "Cx", "Mx", "Nx", "Rx", "Sx",

    # Interest theory
    "InterestBasis",
    "nominal_to_effective_i",
    "effective_to_nominal_i",
    "effective_to_nominal_d",
    "nominal_to_effective_d",
    "effective_i_to_d",
    "effective_d_to_i",
    "alpha_m",
    "beta_m",
    "discount_factors",
    "an", "aan", "Ian", "Iaan", "Dan", "Daan", "sn", "ssn",

    # Formulas
    "Ax", "Ax1n", "Exn", "Axn",
    "IAx", "IAx1n", "IAxn", "DAx1n", "DAxn",
    "aax", "aaxn", "ax", "axn",
    "Iaax", "Iaaxn", "Daaxn",
    "gAx", "gAx1n", "gExn", "gAxn", "gaax", "gaaxn",
]
