"""Queue events and a polling message queue over a supplied service object."""