APP_TITLE = "Mining Royalty Office"

# Page titles
PAGE_CALCULATOR = "Royalty Calculator"
PAGE_RECORDS = "Saved Calculations"
PAGE_SETTINGS = "Royalty Settings"
PAGE_MINERS = "Miners"

# Buttons
BTN_CALCULATE = "Calculate Royalty"
BTN_SAVE_RECORD = "Save Calculation"
BTN_SAVE_SETTINGS = "Save Settings"
BTN_RESET_SETTINGS = "Reset to Defaults"
BTN_ADD_MINER = "Add Miner"
BTN_DOWNLOAD_REPORT = "Download Statement"

# Labels
LBL_WATER_GEL = "Water Gel (kg)"
LBL_NH4NO3 = "NH4NO3 (kg)"
LBL_POWDER_FACTOR = "Powder Factor"
LBL_DUE_DATE = "Payment Due Date"
LBL_MINER = "Miner"

# Guidance
MSG_NEED_MINER = "Add a miner before saving calculations."
MSG_CALCULATED = "Royalty calculated"
MSG_RECORD_SAVED = "Royalty calculation saved"
MSG_SETTINGS_SAVED = "Settings updated"
MSG_SETTINGS_RESET = "Settings reset to default values"
MSG_MINER_SAVED = "Miner added"
MSG_REPORT_FAILED = "Statement could not be downloaded."
MSG_NO_RECORDS = "No saved calculations yet."

# Validation
ERR_NAME_REQUIRED = "First and last name are required."
