# checkout.py - three step checkout form: sender, receiver, payment
#
# the wizard only collects and validates data, submitting the order
# is done by orders.submit_order once the last step passes

import re

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

# (step title, required fields, optional fields)
STEPS = [
    ('Sender', ('sender_fullname', 'sender_country', 'sender_email', 'sender_contact'), ()),
    ('Receiver', ('receiver_fullname', 'receiver_id_number', 'receiver_contact', 'receiver_address'),
     ('receiver_extras',)),
    ('Payment', ('payment_method',), ()),
]

FIELDS = tuple(f for _, required, optional in STEPS for f in required + optional)


class CheckoutError(Exception):
    def __init__(self, message, fields=()):
        super().__init__(message)
        self.fields = tuple(fields)


class CheckoutWizard:
    def __init__(self, step=1, data=None):
        self.step = min(max(int(step), 1), len(STEPS))
        self.data = {name: '' for name in FIELDS}
        self.data.update({k: v for k, v in (data or {}).items() if k in self.data})

    @property
    def title(self):
        return STEPS[self.step - 1][0]

    @property
    def is_last_step(self):
        return self.step == len(STEPS)

    def submit_step(self, form, allowed_payment_methods=None):
        """Validate the current step's fields and move forward.

        Returns True when the final step has been accepted and the
        collected data is ready to become an order.
        """
        _, required, optional = STEPS[self.step - 1]
        values = {name: (form.get(name) or '').strip() for name in required + optional}

        missing = [name for name in required if not values[name]]
        if missing:
            raise CheckoutError('Please fill in all required fields', missing)
        if 'sender_email' in values and not EMAIL_RE.match(values['sender_email']):
            raise CheckoutError('Please enter a valid email address', ['sender_email'])
        if ('payment_method' in values and allowed_payment_methods is not None
                and values['payment_method'] not in allowed_payment_methods):
            raise CheckoutError('Please choose one of the available payment methods', ['payment_method'])

        self.data.update(values)
        if self.is_last_step:
            return True
        self.step += 1
        return False

    def back(self):
        if self.step > 1:
            self.step -= 1

    def to_session(self):
        return {'step': self.step, 'data': dict(self.data)}

    @classmethod
    def from_session(cls, state):
        state = state or {}
        return cls(step=state.get('step', 1), data=state.get('data'))
