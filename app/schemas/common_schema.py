from marshmallow import Schema, fields

class SuccessResponseSchema(Schema):
    result = fields.String(dump_default="success", metadata={'description': 'success / fail'})
    message = fields.String(metadata={'description': 'message for the operator'})


class ErrorResponseSchema(Schema):
    result = fields.String(dump_default="fail", metadata={'description': 'always fail'})
    message = fields.String(metadata={'description': 'what went wrong, naming the conflicting value'})
    code = fields.String(metadata={'description': 'error code (e.g. D002)'})
    data = fields.Raw(allow_none=True, metadata={'description': 'always null'})
