# Import all models so SQLAlchemy can resolve relationships
from app.models.database import Base  # noqa: F401
from app.models.project import Project  # noqa: F401
from app.models.technical import GenerationConfig, StorageConfig, GridConfig  # noqa: F401
from app.models.charging import (  # noqa: F401
    ChargingProfile,
    ChargingProfileBehaviour,
    ChargingHub,
)
from app.models.energy_forecast import EnergyForecast  # noqa: F401
from app.models.cost import CostEntry  # noqa: F401
from app.models.tariff import EnergyTariff, SalesTariff  # noqa: F401
from app.models.analysis_run import AnalysisRun  # noqa: F401
