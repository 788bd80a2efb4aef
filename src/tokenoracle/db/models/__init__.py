from tokenoracle.db.models.price_record import PriceRecord

__all__ = ["PriceRecord"]
