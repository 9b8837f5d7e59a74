from .user import User
from .company import Company
from .pair import Pair
from .asset import Asset
