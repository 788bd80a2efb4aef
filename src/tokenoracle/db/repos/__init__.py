from tokenoracle.db.repos.price_record_repo import PriceRecordRepo

__all__ = ["PriceRecordRepo"]
