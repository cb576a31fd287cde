from .organization import Organization, UserProfile
from .number_series import NumberSeries
from .tax import TaxRate
