import os

from dotenv import load_dotenv

from modelperf.logging import configure_logging
from modelperf.utils import str_to_bool


logger = configure_logging("modelperf.constants")

load_dotenv()


def _from_env(name: str, default: str, cast):
    """Parse an environment variable, falling back to its default when invalid."""
    value = os.getenv(name, default)
    if value == "" and default == "":
        return None
    try:
        return cast(value)
    except ValueError:
        fallback = cast(default) if default != "" else None
        logger.warning(
            f"{name}={value!r} is not a valid {cast.__name__}, using {fallback}"
        )
        return fallback


# Emit advisory warnings (inapplicable models, comparisons across
# different data) when True.
# Defaults to True if not set.
MODELPERF_VERBOSE = str_to_bool(os.getenv("MODELPERF_VERBOSE", "True"))

# Number of posterior draws assembled when averaging the posteriors of
# Bayes factor models.
# Defaults to 4000 if not set.
MODELPERF_AVERAGING_DRAWS = _from_env("MODELPERF_AVERAGING_DRAWS", "4000", int)

# Probability mass of the credible intervals reported with Bayesian R2.
# Defaults to 0.95 if not set.
MODELPERF_CI = _from_env("MODELPERF_CI", "0.95", float)

# Seed for the random number generator used by model averaging.
# Unseeded if not set.
MODELPERF_SEED = _from_env("MODELPERF_SEED", "", int)

if MODELPERF_AVERAGING_DRAWS < 1:
    logger.warning(
        f"MODELPERF_AVERAGING_DRAWS={MODELPERF_AVERAGING_DRAWS} is not "
        "positive, using 4000"
    )
    MODELPERF_AVERAGING_DRAWS = 4000

if not 0.0 < MODELPERF_CI < 1.0:
    logger.warning(f"MODELPERF_CI={MODELPERF_CI} is not in (0, 1), using 0.95")
    MODELPERF_CI = 0.95

logger.debug(
    f"verbose={MODELPERF_VERBOSE} averaging_draws={MODELPERF_AVERAGING_DRAWS} "
    f"ci={MODELPERF_CI} seed={MODELPERF_SEED}"
)
