import logging

class ShortNameFilter(logging.Filter):
    def filter(self, record):
        path = record.name.split(".")
        record.shortname = "-".join(path[-2:])
        return True
