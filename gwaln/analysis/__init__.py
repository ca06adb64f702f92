"""Article comparison core: alignment, bias metrics, confidence and the analyzer."""
