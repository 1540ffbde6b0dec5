from hospital_scraper.database.mongo_client import MongoClientManager

__all__ = ["MongoClientManager"]
