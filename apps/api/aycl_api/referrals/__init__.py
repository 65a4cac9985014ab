from aycl_api.referrals.models import Referral
from aycl_api.referrals.schemas import ReferralCreate, ReferralLink, ReferralRead, ReferralStat

__all__ = ["Referral", "ReferralCreate", "ReferralLink", "ReferralRead", "ReferralStat"]
