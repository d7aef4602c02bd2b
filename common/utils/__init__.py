"""
Utils package

- db_error_utils: IntegrityError classification
- identifier_utils: business identifiers / login address allocation
- logging_utils: logger setup
"""
