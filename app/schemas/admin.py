from marshmallow import Schema, fields, validate


class OrphanReportRequestSchema(Schema):
    grace_minutes = fields.Integer(
        load_default=None,
        validate=validate.Range(min=0),
        metadata={'description': 'ignore anything younger than this (default ORPHAN_GRACE_MINUTES)'}
    )


class OrphanedProfileSchema(Schema):
    user_id = fields.String(metadata={'description': 'profile id'})
    auth_id = fields.String(metadata={'description': 'login identity handle'})
    email = fields.String(metadata={'description': 'login email'})
    name = fields.String(metadata={'description': 'name'})
    created_at = fields.String(metadata={'description': 'created at (ISO 8601)'})


class SagaStepSchema(Schema):
    name = fields.String()
    status = fields.String()
    started_at = fields.String(allow_none=True)
    completed_at = fields.String(allow_none=True)
    compensated_at = fields.String(allow_none=True)
    error_message = fields.String(allow_none=True)
    compensation_data = fields.Dict()


class SagaTransactionLogSchema(Schema):
    transaction_id = fields.String(metadata={'description': 'saga run id'})
    saga_type = fields.String(metadata={'description': 'saga kind'})
    status = fields.String(metadata={'description': 'pending / in_progress / completed / compensating / compensated / failed'})
    steps = fields.List(fields.Nested(SagaStepSchema), metadata={'description': 'steps in order'})
    saga_metadata = fields.Dict(attribute='metadata', data_key='metadata', metadata={'description': 'run metadata'})
    created_at = fields.String(allow_none=True)
    completed_at = fields.String(allow_none=True)
    compensation_started_at = fields.String(allow_none=True)
    compensation_completed_at = fields.String(allow_none=True)


class OrphanReportResponseSchema(Schema):
    checked_at = fields.String(metadata={'description': 'report time (ISO 8601)'})
    grace_minutes = fields.Integer(metadata={'description': 'grace period used'})
    orphaned_profiles = fields.List(fields.Nested(OrphanedProfileSchema), metadata={'description': 'doctor profiles without a doctor record'})
    stale_sagas = fields.List(fields.Nested(SagaTransactionLogSchema), metadata={'description': 'saga runs stuck mid-way'})
