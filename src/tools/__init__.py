from tools.dashboard import stats  # noqa: F401
from tools.reports import daily, monthly_net, period_summary, platform_earnings, transactions_list  # noqa: F401
