import json

import cadsync

value = {
    "entities": [
        {"type": "LINE", "layer": "WALLS", "start": [0, 0, 0], "end": [10, 0, 0]},
        {"type": "INSERT", "layer": "FURN", "block": "CHAIR", "insertion_point": [1, 2, 0], "rotation": 45},
        {"type": "CIRCLE", "center": {"x": 5, "y": 5, "z": 0}, "radius": 2},
    ]
}

doc = cadsync.CadDocument.from_dict(value).revised()
result = cadsync.encode_dxf(doc)
print(result.text)
print(json.dumps(cadsync.decode(result.text).document.to_dict(), indent=2))
