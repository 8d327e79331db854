# Run from examples/wizard:  uvicorn app.main:app --reload
from formstep.app import App
from formstep.controller import FormController
from formstep.errors import ValidationError

app = App()

# In-memory stand-in for real storage, keyed by session id.
applications = {}


class Step(FormController):
    """Saves each step's values into the visitor's application."""

    async def get_values(self, req):
        return dict(applications.get(req.session.get("sid"), {}))

    async def save_values(self, req, ctx):
        sid = req.session.setdefault("sid", str(len(applications) + 1))
        req.session_modified = True
        applications.setdefault(sid, {}).update(ctx.values)


class ContactStep(Step):
    async def validate(self, req, ctx):
        # one of the two contact routes is needed
        if not ctx.values.get("email") and not ctx.values.get("phone"):
            return {"email": ValidationError("email", "contact-required")}
        return None


name = Step({
    "template": "name",
    "next": "/contact",
    "default_formatters": ["trim", "singlespaces"],
    "fields": {
        "title": {"options": ["mr", "mrs", "ms", {"value": "dr", "label": "Dr"}]},
        "name": {"validate": ["required", {"type": "maxlength", "arguments": 60}]},
    },
})

contact = ContactStep({
    "template": "contact",
    "next": "/done",
    "default_formatters": ["trim"],
    "fields": {
        "email": {"formatter": ["trim", "lowercase"], "validate": "email"},
        "phone": {"formatter": ["removespaces"], "validate": "numeric"},
    },
})

done = Step({"template": "done"})


@contact.on("complete")
def log_application(req, resp):
    print("application complete:", applications.get(req.session.get("sid")))


app.mount("/name", name.request_handler())
app.mount("/contact", contact.request_handler())
app.mount("/done", done.request_handler())
